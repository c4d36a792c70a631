"""
Stage enums, gate rules and transition validation.

Pure domain logic: no DB access, no I/O. Consumed by the repository to
gate writes and by the API to render "what's missing" hints.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Tuple

from core.exceptions import InvalidStageError
from schemas.sources import SourceRead


class Stage(IntEnum):
    """Four-stage acquisition pipeline. Values are ordinal for comparison."""

    DISCOVERED = 1
    ACQUIRED = 2
    GEOREFERENCED = 3
    MAP_READY = 4  # Terminal

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


STAGE_LABELS: Dict[Stage, str] = {
    Stage.DISCOVERED: "Discovered",
    Stage.ACQUIRED: "Acquired",
    Stage.GEOREFERENCED: "Georeferenced",
    Stage.MAP_READY: "Map-Ready",
}


def _is_set(value: Optional[str]) -> bool:
    """None and "" both count as unset."""
    return value is not None and value != ""


@dataclass(frozen=True)
class GateRule:
    """One requirement that must hold before a source may reach target_stage."""

    target_stage: Stage
    requirement: str
    predicate: Callable[[SourceRead], bool]

    def violation(self, source: SourceRead) -> Optional[str]:
        if self.predicate(source):
            return None
        return f"Stage {int(self.target_stage)} requires {self.requirement}"


# Ordered by target stage; messages are reported in this order.
GATE_RULES: Tuple[GateRule, ...] = (
    GateRule(Stage.ACQUIRED, "source url", lambda s: _is_set(s.source_url)),
    GateRule(Stage.GEOREFERENCED, "iiif url", lambda s: _is_set(s.iiif_url)),
    GateRule(Stage.GEOREFERENCED, "georeference url", lambda s: _is_set(s.georeference_url)),
    GateRule(
        Stage.MAP_READY,
        "at least one georeferenced tile",
        lambda s: any(tile.georeferenced for tile in s.tiles),
    ),
)


def coerce_stage(value) -> Stage:
    """Convert an int-like stage to Stage, raising InvalidStageError otherwise."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidStageError(
            f"Stage must be an integer between 1 and 4, got {value!r}",
            context={"stage": value},
        )
    try:
        return Stage(value)
    except ValueError as e:
        raise InvalidStageError(
            f"Stage must be between 1 and 4, got {value}",
            context={"stage": value},
            original_exception=e,
        )


def evaluate_stage_gate(source: SourceRead, target_stage: int) -> List[str]:
    """Enumerate every unmet requirement for reaching target_stage.

    Pure function -- no side effects, no DB access.

    Gates are cumulative: reaching stage N requires the gates of every stage
    from 2 up to and including N, so a source can never sit at stage 4
    without a source url even if fields were edited out of order.

    Args:
        source: Source read model (only current field values are inspected)
        target_stage: Stage 1-4

    Returns:
        Violation messages in rule order; empty means the stage is reachable

    Raises:
        InvalidStageError: target_stage is not an integer in 1-4
    """
    stage = coerce_stage(target_stage)
    violations = []
    for rule in GATE_RULES:
        if rule.target_stage > stage:
            break
        message = rule.violation(source)
        if message:
            violations.append(message)
    return violations


@dataclass
class TransitionResult:
    """Result of a transition check."""

    allowed: bool
    violations: List[str] = field(default_factory=list)
    new_stage: Optional[Stage] = None


def validate_transition(source: SourceRead, target_stage: int) -> TransitionResult:
    """Validate moving a source from its current stage to target_stage.

    Pure function -- no side effects, no DB access.

    Rules:
        - Same-stage transitions are rejected
        - Jumps of more than one stage are rejected in either direction
        - Reverting by one stage is always allowed (no gate is checked)
        - Advancing by one stage is allowed iff evaluate_stage_gate is empty

    Raises:
        InvalidStageError: target_stage is not an integer in 1-4
    """
    target = coerce_stage(target_stage)
    current = source.stage

    if target == current:
        return TransitionResult(False, [f"Source is already at stage {current}"])

    if abs(target - current) > 1:
        return TransitionResult(
            False,
            [f"Cannot move from stage {current} to stage {int(target)}: stages change one at a time"],
        )

    # Revert is an undo, not a validated transition
    if target < current:
        return TransitionResult(True, new_stage=target)

    violations = evaluate_stage_gate(source, target)
    if violations:
        return TransitionResult(False, violations)
    return TransitionResult(True, new_stage=target)


def next_stage_requirements(source: SourceRead) -> List[str]:
    """Requirements still blocking the next stage; empty at the terminal stage."""
    if source.stage >= Stage.MAP_READY:
        return []
    return evaluate_stage_gate(source, source.stage + 1)


def gate_report(source: SourceRead) -> Dict[int, List[str]]:
    """Unmet cumulative requirements for each of stages 2-4."""
    return {
        int(stage): evaluate_stage_gate(source, stage)
        for stage in Stage
        if stage > Stage.DISCOVERED
    }
