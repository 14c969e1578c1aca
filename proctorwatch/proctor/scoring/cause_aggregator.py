"""
Cause Aggregator - Merges per-check causes into one ranked list
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .rule_evaluator import CheckResult


@dataclass(frozen=True)
class CauseSet:
    """Ordered, de-duplicated causes for one frame."""
    causes: Tuple[str, ...] = ()

    @property
    def primary(self) -> Optional[str]:
        return self.causes[0] if self.causes else None

    @property
    def is_anomalous(self) -> bool:
        return len(self.causes) > 0


class CauseAggregator:
    """
    Concatenates check results in evaluation order.

    The first cause is the primary one and drives the persistence timer.
    """

    def aggregate(self, results: Iterable[CheckResult]) -> CauseSet:
        ordered = []
        for result in results:
            for cause in result.causes:
                if cause not in ordered:
                    ordered.append(cause)
        return CauseSet(causes=tuple(ordered))

    def single(self, cause: str) -> CauseSet:
        return CauseSet(causes=(cause,))
