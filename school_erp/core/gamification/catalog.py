"""Point, achievement and challenge tables for the gamification economy.

The tables are immutable values handed to the engine. Changing the economy
means building a different :class:`GamificationCatalog` (or loading one from
JSON with :func:`load_catalog`), never mutating a shared module global.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Literal, Mapping, Tuple

ChallengePeriod = Literal["daily", "weekly", "monthly"]
CHALLENGE_PERIODS: Tuple[str, ...] = ("daily", "weekly", "monthly")


@dataclass(frozen=True)
class ActionDefinition:
    """Points and log label for one action type."""

    action_type: str
    points: int
    description: str


@dataclass(frozen=True)
class MilestoneRule:
    """Completion target and bonus for an achievement or challenge."""

    milestone_id: str
    target: int
    bonus_points: int
    title: str
    period: ChallengePeriod = "weekly"


def _freeze(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ActionCatalog:
    """Resolve point values and descriptions for action types."""

    actions: Mapping[str, ActionDefinition]
    default_points: int = 10
    default_description: str = "Completed a task"

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", _freeze(self.actions))

    def points_for(self, action_type: str) -> int:
        definition = self.actions.get(action_type)
        return definition.points if definition else self.default_points

    def description_for(self, action_type: str) -> str:
        definition = self.actions.get(action_type)
        return definition.description if definition else self.default_description


@dataclass(frozen=True)
class MilestoneTable:
    """Rules for one milestone kind plus the action types that advance them.

    ``triggers`` may reference ids absent from ``rules``; those resolve to a
    fallback rule with ``default_target`` and ``default_bonus``.
    """

    rules: Mapping[str, MilestoneRule]
    triggers: Mapping[str, Tuple[str, ...]]
    default_bonus: int
    default_target: int = 1
    default_title: str = "Milestone"
    default_period: ChallengePeriod = "weekly"

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", _freeze(self.rules))
        object.__setattr__(
            self,
            "triggers",
            _freeze({action: tuple(ids) for action, ids in self.triggers.items()}),
        )

    def ids_for(self, action_type: str) -> Tuple[str, ...]:
        return self.triggers.get(action_type, ())

    def rule_for(self, milestone_id: str) -> MilestoneRule:
        rule = self.rules.get(milestone_id)
        if rule is not None:
            return rule
        return MilestoneRule(
            milestone_id=milestone_id,
            target=self.default_target,
            bonus_points=self.default_bonus,
            title=self.default_title,
            period=self.default_period,
        )


@dataclass(frozen=True)
class GamificationCatalog:
    """Complete economy: action points, achievements and challenges."""

    actions: ActionCatalog
    achievements: MilestoneTable
    challenges: MilestoneTable
    name: str = field(default="default", compare=False)


def _actions(rows: list[tuple[str, int, str]]) -> Dict[str, ActionDefinition]:
    return {key: ActionDefinition(key, points, description) for key, points, description in rows}


def _rules(rows: list[tuple]) -> Dict[str, MilestoneRule]:
    return {row[0]: MilestoneRule(*row) for row in rows}


DEFAULT_CATALOG = GamificationCatalog(
    actions=ActionCatalog(
        actions=_actions(
            [
                ("daily_login", 10, "Daily login completed"),
                ("student_add", 25, "Added a new student"),
                ("document_upload", 15, "Uploaded a document"),
                ("training_complete", 50, "Completed a training"),
                ("event_create", 30, "Created an event"),
                ("iso_submission", 40, "Submitted ISO documentation"),
                ("club_create", 35, "Created a new club"),
                ("club_join", 20, "Joined a club"),
                ("message_send", 5, "Sent a message"),
                ("profile_edit", 10, "Updated profile"),
                ("attendance_record", 15, "Recorded attendance"),
                ("recognition_award", 25, "Awarded student recognition"),
            ]
        ),
    ),
    achievements=MilestoneTable(
        rules=_rules(
            [
                ("student_add_10", 10, 200, "Achievement"),
                ("document_master", 20, 150, "Achievement"),
                ("training_organizer", 5, 300, "Achievement"),
                ("event_master", 10, 400, "Achievement"),
                ("iso_compliance", 1, 500, "ISO Champion"),
                ("club_creator", 3, 250, "Achievement"),
            ]
        ),
        triggers={
            "student_add": ("student_add_10",),
            "document_upload": ("document_master",),
            "training_complete": ("training_organizer",),
            "event_create": ("event_master",),
            "iso_submission": ("iso_compliance",),
            "club_create": ("club_creator",),
        },
        default_bonus=100,
        default_title="Achievement",
    ),
    challenges=MilestoneTable(
        rules=_rules(
            [
                ("daily_login", 7, 100, "Daily Dedication", "weekly"),
                ("weekly_documents", 5, 150, "Challenge", "weekly"),
                ("weekly_events", 2, 200, "Challenge", "weekly"),
                ("monthly_iso", 3, 300, "ISO Progress", "monthly"),
                # Not advanced by any action type.
                ("monthly_engagement", 50, 400, "Challenge", "monthly"),
            ]
        ),
        triggers={
            "daily_login": ("daily_login",),
            "document_upload": ("weekly_documents",),
            "event_create": ("weekly_events",),
            "iso_submission": ("monthly_iso",),
        },
        default_bonus=50,
        default_title="Challenge",
    ),
)


# ----------------------------------------------------------------------
# JSON loading
# ----------------------------------------------------------------------
def _load_table(
    payload: Mapping[str, Any] | None, fallback: MilestoneTable, *, with_period: bool
) -> MilestoneTable:
    if payload is None:
        return fallback

    rules: Dict[str, MilestoneRule] = {}
    for milestone_id, entry in payload.get("rules", {}).items():
        period = entry.get("period", fallback.default_period) if with_period else fallback.default_period
        if period not in CHALLENGE_PERIODS:
            raise ValueError(f"Unknown challenge period {period!r} for {milestone_id!r}")
        rules[milestone_id] = MilestoneRule(
            milestone_id=milestone_id,
            target=int(entry.get("target", fallback.default_target)),
            bonus_points=int(entry.get("bonus", fallback.default_bonus)),
            title=entry.get("title", fallback.default_title),
            period=period,
        )

    return MilestoneTable(
        rules=rules if "rules" in payload else fallback.rules,
        triggers={
            action: tuple(ids) for action, ids in payload.get("triggers", fallback.triggers).items()
        },
        default_bonus=int(payload.get("default_bonus", fallback.default_bonus)),
        default_target=int(payload.get("default_target", fallback.default_target)),
        default_title=fallback.default_title,
        default_period=fallback.default_period,
    )


def catalog_from_dict(payload: Mapping[str, Any], *, name: str = "custom") -> GamificationCatalog:
    """Build a catalog from a plain mapping, defaulting missing sections."""

    base = DEFAULT_CATALOG
    actions_payload = payload.get("actions")
    if actions_payload is None:
        actions = base.actions
    else:
        actions = ActionCatalog(
            actions={
                action_type: ActionDefinition(
                    action_type,
                    int(entry["points"]),
                    entry.get("description", base.actions.default_description),
                )
                for action_type, entry in actions_payload.items()
            },
            default_points=int(payload.get("default_points", base.actions.default_points)),
            default_description=payload.get(
                "default_description", base.actions.default_description
            ),
        )

    return GamificationCatalog(
        actions=actions,
        achievements=_load_table(payload.get("achievements"), base.achievements, with_period=False),
        challenges=_load_table(payload.get("challenges"), base.challenges, with_period=True),
        name=name,
    )


def load_catalog(path: str | Path) -> GamificationCatalog:
    """Read a catalog from a JSON file."""

    path = Path(path)
    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    return catalog_from_dict(payload, name=path.stem)


__all__ = [
    "ActionCatalog",
    "ActionDefinition",
    "ChallengePeriod",
    "DEFAULT_CATALOG",
    "GamificationCatalog",
    "MilestoneRule",
    "MilestoneTable",
    "catalog_from_dict",
    "load_catalog",
]
