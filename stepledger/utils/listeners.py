"""
In-process publish/subscribe registry

Each service owns its own registry instance; there is no module-level
listener state. subscribe() hands back an unsubscribe capability that only
ever removes the listener it was issued for.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class ListenerRegistry:
    """Fan-out to N listeners with safe unsubscription"""

    def __init__(self, name: str):
        self.name = name
        self._listeners: Dict[int, Listener] = {}
        self._next_token = 0

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener

        Returns:
            unsubscribe() - idempotent, removes only this registration
        """
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        logger.debug(f"[{self.name}] listener {token} subscribed ({len(self._listeners)} total)")

        def unsubscribe() -> None:
            if self._listeners.pop(token, None) is not None:
                logger.debug(f"[{self.name}] listener {token} unsubscribed")

        return unsubscribe

    def __len__(self) -> int:
        return len(self._listeners)

    def _snapshot(self) -> List[tuple[int, Listener]]:
        # Listeners may unsubscribe while being notified
        return list(self._listeners.items())

    def notify(self, *args: Any) -> int:
        """
        Invoke every listener synchronously

        A failing listener is logged and skipped; the rest still run.

        Returns:
            Number of listeners that completed without error
        """
        delivered = 0
        for token, listener in self._snapshot():
            try:
                listener(*args)
                delivered += 1
            except Exception as e:
                logger.error(f"[{self.name}] listener {token} failed: {e}", exc_info=True)
        return delivered

    async def notify_async(self, *args: Any) -> int:
        """
        Invoke every listener in registration order, awaiting coroutine listeners

        Returns:
            Number of listeners that completed without error
        """
        delivered = 0
        for token, listener in self._snapshot():
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error(f"[{self.name}] listener {token} failed: {e}", exc_info=True)
        return delivered
