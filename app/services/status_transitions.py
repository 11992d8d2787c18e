"""Forward-only game status promotion driven by derived completion scores.

Rules are evaluated top to bottom and the first matching guard wins. No rule
ever targets ``dropped`` and none demotes a ``completed`` game, even when the
completionist score later falls below 100.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .progress_calculator import DerivedProgress

DEFAULT_STATUS = "backlog"


@dataclass(frozen=True)
class NoChange:
    status_changed = False
    new_status = None

    def to_dict(self) -> dict:
        return {"status_changed": False, "new_status": None}


@dataclass(frozen=True)
class ChangeTo:
    status: str
    status_changed = True

    @property
    def new_status(self) -> str:
        return self.status

    def to_dict(self) -> dict:
        return {"status_changed": True, "new_status": self.status}


Transition = Union[NoChange, ChangeTo]
Guard = Callable[[str, DerivedProgress], bool]


@dataclass(frozen=True)
class StatusRule:
    name: str
    guard: Guard
    target: str


STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(
        name="completionist_maxed",
        guard=lambda current, progress: progress.completionist == 100,
        target="completed",
    ),
    StatusRule(
        name="full_maxed",
        guard=lambda current, progress: progress.full == 100 and current != "completed",
        target="finished",
    ),
    StatusRule(
        name="started_from_backlog",
        guard=lambda current, progress: current == "backlog" and progress.main > 0,
        target="playing",
    ),
)


def resolve_target(
    current: Optional[str],
    progress: DerivedProgress,
    rules: tuple[StatusRule, ...] = STATUS_RULES,
) -> Optional[str]:
    current_status = current or DEFAULT_STATUS
    for rule in rules:
        if rule.guard(current_status, progress):
            return rule.target
    return None


def evaluate_transition(
    current: Optional[str],
    progress: DerivedProgress,
    rules: tuple[StatusRule, ...] = STATUS_RULES,
) -> Transition:
    current_status = current or DEFAULT_STATUS
    target = resolve_target(current_status, progress, rules)
    if target is None or target == current_status:
        return NoChange()
    return ChangeTo(target)
