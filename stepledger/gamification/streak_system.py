"""
Step Streak Calculation

A streak is a run of consecutive calendar days on which the user met the
step goal. Streaks are derived from the stored series on every query;
nothing about them is persisted.

Logic:
- Scan backward up to 365 days from today
- A day qualifies if steps >= goal, or if the day was covered by a streak
  protection
- longest_streak is the longest qualifying run in the scan
- current_streak is the run ending today if today qualifies, otherwise the
  run ending yesterday (the streak is still alive but at risk), otherwise 0
"""

from datetime import date, timedelta
from typing import Dict, Iterable, Optional
import logging

from stepledger import config
from stepledger.models.streak import StreakState, StreakStatus
from stepledger.store.base import USER_STEPS, DocumentStore, Filter
from stepledger.utils.datetime_helpers import to_date_str, today_local

logger = logging.getLogger(__name__)

LOOKBACK_DAYS = 365
STREAK_MILESTONES = (3, 7, 14, 30, 50, 100)


def calculate_streak(
    steps_by_date: Dict[str, int],
    goal: int,
    today: date,
    protected_dates: Iterable[str] = ()
) -> StreakState:
    """
    Derive streak state from a {YYYY-MM-DD: steps} mapping

    Example:
        {today: 8000, -1: 7500, -2: 9000, -3: 6000}, goal 7500
        -> current 3, longest 3, active today
    """
    protected = set(protected_dates)

    def qualifies(day: date) -> bool:
        key = to_date_str(day)
        return steps_by_date.get(key, 0) >= goal or key in protected

    # Oldest -> newest over the lookback window
    days = [today - timedelta(days=offset) for offset in range(LOOKBACK_DAYS - 1, -1, -1)]

    longest = 0
    run = 0
    run_start: Optional[date] = None
    run_at: Dict[date, tuple[int, Optional[date]]] = {}
    last_activity: Optional[date] = None

    for day in days:
        if qualifies(day):
            if run == 0:
                run_start = day
            run += 1
            longest = max(longest, run)
        else:
            run = 0
            run_start = None
        run_at[day] = (run, run_start)

        if steps_by_date.get(to_date_str(day), 0) >= goal:
            last_activity = day

    yesterday = today - timedelta(days=1)
    current, start = run_at[today]
    if current == 0:
        current, start = run_at.get(yesterday, (0, None))

    return StreakState(
        current_streak=current,
        longest_streak=longest,
        streak_start_date=to_date_str(start) if current > 0 and start else None,
        last_activity_date=to_date_str(last_activity) if last_activity else None,
        is_active_today=steps_by_date.get(to_date_str(today), 0) >= goal,
    )


def days_to_next_milestone(current_streak: int) -> Optional[int]:
    """Days left until the next streak milestone, or None past the last one"""
    for milestone in STREAK_MILESTONES:
        if current_streak < milestone:
            return milestone - current_streak
    return None


def streak_status_message(state: StreakState) -> str:
    """Short status line for the streak card"""
    status = state.status

    if status == StreakStatus.NONE:
        if state.longest_streak > 0:
            return f"Start a new streak today! Best so far: {state.longest_streak} days 💪"
        return "Reach your goal today to start a streak! 👟"

    remaining = days_to_next_milestone(state.current_streak)

    if status == StreakStatus.AT_RISK:
        return f"Your {state.current_streak}-day streak is at risk. Reach your goal today to keep it! ⚠️"

    message = f"{state.current_streak}-day streak! 🔥"
    if remaining is not None:
        message += f" {remaining} more day(s) to the next milestone"
    return message


class StreakCalculator:
    """Reads the stored series and derives StreakState"""

    def __init__(self, store: DocumentStore, tz=None):
        self.store = store
        self.tz = tz

    async def load_steps_by_date(self, user_id: str) -> Dict[str, int]:
        """Up to LOOKBACK_DAYS most recent records as {date: steps}"""
        documents = await self.store.query(
            USER_STEPS,
            [Filter("userId", "==", user_id)],
            order_by="date",
            descending=True,
            limit=LOOKBACK_DAYS,
        )
        steps_by_date: Dict[str, int] = {}
        for document in documents:
            try:
                steps_by_date[document["date"]] = int(document.get("steps") or 0)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed step record for user {user_id}: {document!r}")
        return steps_by_date

    async def compute_streak(
        self,
        user_id: str,
        goal: Optional[int] = None,
        today: Optional[date] = None,
        protected_dates: Iterable[str] = ()
    ) -> StreakState:
        """
        Current and longest streak for user_id

        Args:
            user_id: User whose series to read
            goal: Daily step goal (defaults to config.DEFAULT_STEP_GOAL)
            today: Reference date (defaults to local today)
            protected_dates: Dates covered by streak protections

        Returns:
            StreakState (all zero/None when the user has no records)
        """
        goal = config.DEFAULT_STEP_GOAL if goal is None else goal
        today = today or today_local(self.tz)

        steps_by_date = await self.load_steps_by_date(user_id)
        state = calculate_streak(steps_by_date, goal, today, protected_dates)

        logger.info(
            f"Streak for user {user_id}: current={state.current_streak}, "
            f"longest={state.longest_streak}, status={state.status.value}"
        )
        return state
