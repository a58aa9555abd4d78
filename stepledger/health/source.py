"""
Health source contract

The platform health API (HealthKit, Google Fit, ...) is an opaque data source
scoped to the signed-in user. Callers pass timezone-aware local
midnight-to-midnight instants; implementations serialize them with
.isoformat() when the platform wants ISO-8601 strings.
"""

from datetime import datetime
from typing import Any, Protocol, Sequence, Union

from stepledger.models.steps import StepSample, StepTotal


class HealthSource(Protocol):
    """Two independent query shapes over the same step data"""

    async def query_samples(
        self,
        start: datetime,
        end: datetime
    ) -> Sequence[Union[StepSample, dict[str, Any]]]:
        """
        Timestamped step entries overlapping [start, end]

        Entries are StepSample or dicts shaped {timestampStart, value}.
        """
        ...

    async def query_total(
        self,
        start: datetime,
        end: datetime
    ) -> Union[StepTotal, dict[str, Any], int, float, None]:
        """One aggregate for [start, end], shaped {value}"""
        ...
