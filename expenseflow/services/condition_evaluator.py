"""Evaluate a step's conditional rule against the decisions recorded for its group."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from expenseflow.models import (
    AmountThresholdCondition,
    ApprovalRule,
    FlowStep,
    PercentageCondition,
    SpecificUserCondition,
)
from expenseflow.services.decision_recorder import count_approved

logger = logging.getLogger(__name__)

DEFAULT_PERCENTAGE = 100


class VerdictKind(enum.Enum):
    AUTO_APPROVE = "AUTO_APPROVE"
    THRESHOLD_MET = "THRESHOLD_MET"
    NO_VERDICT = "NO_VERDICT"


@dataclass(frozen=True)
class Verdict:
    kind: VerdictKind
    percentage: Optional[int] = None
    required: Optional[int] = None

    @property
    def approves(self) -> bool:
        return self.kind is not VerdictKind.NO_VERDICT


NO_VERDICT = Verdict(VerdictKind.NO_VERDICT)


def approval_percentage(approved_count: int, group_size: int) -> int:
    """Percentage of the group that has approved, rounded half up."""
    total = max(group_size, 1)
    # Halves round up, unlike round().
    return int(approved_count * 100 / total + 0.5)


def evaluate(
    rule: Optional[ApprovalRule],
    approver_id: int,
    expense_id: int,
    group: Sequence[FlowStep],
    default_percentage: int = DEFAULT_PERCENTAGE,
) -> Verdict:
    """Return the first applicable verdict of ``rule``.

    Conditions are not combined: a SpecificUser condition naming the acting
    approver wins outright, otherwise the first Percentage condition is
    checked against the group's approvals. AmountThreshold conditions and the
    stored logic operator are not consulted.
    """
    if rule is None:
        return NO_VERDICT

    kinds = [condition.as_kind() for condition in rule.conditions]

    specific = _first(kinds, SpecificUserCondition)
    if specific is not None and specific.user_id == approver_id:
        logger.debug(f"Rule {rule.id}: specific approver {approver_id} matched")
        return Verdict(VerdictKind.AUTO_APPROVE)

    percentage = _first(kinds, PercentageCondition)
    if percentage is not None:
        required = percentage.threshold or default_percentage
        step_ids = [step.id for step in group]
        pct = approval_percentage(count_approved(expense_id, step_ids), len(step_ids))
        logger.debug(f"Rule {rule.id}: {pct}% of group approved, {required}% required")
        if pct >= required:
            return Verdict(VerdictKind.THRESHOLD_MET, percentage=pct, required=required)

    if _first(kinds, AmountThresholdCondition) is not None:
        logger.debug(f"Rule {rule.id}: amount threshold condition present but not evaluated")

    return NO_VERDICT


def _first(kinds: List, variant: type):
    return next((kind for kind in kinds if isinstance(kind, variant)), None)
