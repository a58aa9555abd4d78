"""Authentication gate for mutating operations"""
import logging
from typing import Optional, Protocol

from stepledger.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


class AuthProvider(Protocol):
    """Anything that can report the signed-in user"""

    def current_user_id(self) -> Optional[str]:
        ...


class AuthSession:
    """
    Mutable holder for the signed-in identity

    The app's auth layer calls sign_in/sign_out; engines only read it.
    """

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id
        logger.info(f"User {user_id} signed in")

    def sign_out(self) -> None:
        logger.info(f"User {self._user_id} signed out")
        self._user_id = None


def require_auth(auth: AuthProvider, operation: Optional[str] = None) -> str:
    """
    Return the authenticated user ID

    Raises:
        AuthenticationError: If nobody is signed in
    """
    user_id = auth.current_user_id()
    if not user_id:
        raise AuthenticationError(operation=operation)
    return user_id


def ensure_owner(
    auth: AuthProvider,
    user_id: str,
    resource: str,
    operation: Optional[str] = None
) -> str:
    """
    Verify the signed-in user is the target user

    IDs compare as exact strings (an int ID matches its decimal string, which
    is also how storage keys render it).

    Raises:
        AuthenticationError: If nobody is signed in
        AuthorizationError: If the signed-in user is someone else
    """
    current = str(require_auth(auth, operation))
    target = str(user_id) if user_id is not None else ""

    if current != target:
        raise AuthorizationError(
            message=f"Unauthorized access to {resource} data",
            resource=resource,
            user_id=current,
            operation=operation,
        )

    logger.debug(f"Ownership check passed: user={current}, resource={resource}")
    return current
