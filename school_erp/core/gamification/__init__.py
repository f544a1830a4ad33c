"""Gamification accrual: action catalog, points ledger and progress evaluator."""

from .catalog import (
    DEFAULT_CATALOG,
    ActionCatalog,
    ActionDefinition,
    GamificationCatalog,
    MilestoneRule,
    MilestoneTable,
    catalog_from_dict,
    load_catalog,
)
from .engine import ActionResult, GamificationEngine
from .evaluator import MilestoneCompletion, ProgressEvaluator
from .ledger import CreditResult, PointsLedger
from .repository import CounterState, GamificationRepository
from .scheduling import ChallengeWindowScheduler, utcnow

__all__ = [
    "ActionCatalog",
    "ActionDefinition",
    "ActionResult",
    "ChallengeWindowScheduler",
    "CounterState",
    "CreditResult",
    "DEFAULT_CATALOG",
    "GamificationCatalog",
    "GamificationEngine",
    "GamificationRepository",
    "MilestoneCompletion",
    "MilestoneRule",
    "MilestoneTable",
    "PointsLedger",
    "ProgressEvaluator",
    "catalog_from_dict",
    "load_catalog",
    "utcnow",
]
