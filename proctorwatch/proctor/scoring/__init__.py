"""Rule evaluation, cause ranking and status reporting"""

from .rule_evaluator import RuleEvaluator, CheckResult, Cause
from .cause_aggregator import CauseAggregator, CauseSet
from .status_reporter import ProctoringStatus, StatusReporter

__all__ = [
    "RuleEvaluator",
    "CheckResult",
    "Cause",
    "CauseAggregator",
    "CauseSet",
    "ProctoringStatus",
    "StatusReporter",
]
