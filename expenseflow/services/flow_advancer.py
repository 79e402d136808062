"""State machine moving an expense through its flow's approval groups."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from expenseflow.models import (
    ApprovalDecisionStatus,
    Expense,
    ExpenseStatus,
    FlowStep,
)
from expenseflow.services import condition_evaluator
from expenseflow.services.decision_recorder import count_approved

logger = logging.getLogger(__name__)


class Transition(enum.Enum):
    REJECTED = "REJECTED"
    RULE_APPROVED = "RULE_APPROVED"
    ADVANCED = "ADVANCED"
    COMPLETED = "COMPLETED"
    WAITING = "WAITING"
    DUPLICATE = "DUPLICATE"
    NO_ACTIVE_STEP = "NO_ACTIVE_STEP"


@dataclass
class AdvanceResult:
    transition: Transition
    status: ExpenseStatus
    message: str
    next_step_id: Optional[int] = None

    def to_dict(self) -> dict:
        payload = {
            "status": self.status.value,
            "transition": self.transition.value,
            "message": self.message,
        }
        if self.next_step_id is not None:
            payload["nextStepId"] = self.next_step_id
        return payload


def load_group(step: FlowStep) -> List[FlowStep]:
    """All steps sharing ``step``'s flow and order, lowest id first."""
    return (
        FlowStep.query.filter_by(flow_id=step.flow_id, step_order=step.step_order)
        .order_by(FlowStep.id)
        .all()
    )


def next_group(step: FlowStep) -> List[FlowStep]:
    """Steps of the smallest order strictly greater than ``step``'s order."""
    following = (
        FlowStep.query.filter(
            FlowStep.flow_id == step.flow_id,
            FlowStep.step_order > step.step_order,
        )
        .order_by(FlowStep.step_order, FlowStep.id)
        .all()
    )
    if not following:
        return []
    order = following[0].step_order
    return [candidate for candidate in following if candidate.step_order == order]


def finalize(expense: Expense, status: ExpenseStatus) -> None:
    expense.status = status
    expense.current_flow_step_id = None


def move_past_group(expense: Expense, step: FlowStep) -> AdvanceResult:
    """Activate the next group after ``step``'s group, or approve at end of flow."""
    upcoming = next_group(step)
    if upcoming:
        expense.current_flow_step_id = upcoming[0].id
        logger.info(
            f"Expense {expense.id} advanced from order {step.step_order} "
            f"to order {upcoming[0].step_order} (step {upcoming[0].id})"
        )
        return AdvanceResult(
            Transition.ADVANCED,
            expense.status,
            "Moved to next approval step",
            next_step_id=upcoming[0].id,
        )

    finalize(expense, ExpenseStatus.APPROVED)
    logger.info(f"Expense {expense.id} approved at end of flow")
    return AdvanceResult(Transition.COMPLETED, expense.status, "Expense approved (end of flow)")


def apply_decision(
    expense: Expense,
    matching_step: FlowStep,
    group: Sequence[FlowStep],
    decision: ApprovalDecisionStatus,
    approver_id: int,
    default_percentage: int = condition_evaluator.DEFAULT_PERCENTAGE,
) -> AdvanceResult:
    """Apply the transition rules for a freshly recorded decision.

    Order: reject-fast, rule short-circuit, group completion, otherwise wait.
    """
    if decision == ApprovalDecisionStatus.REJECTED:
        finalize(expense, ExpenseStatus.REJECTED)
        logger.info(f"Expense {expense.id} rejected by user {approver_id} at step {matching_step.id}")
        return AdvanceResult(Transition.REJECTED, expense.status, "Expense rejected")

    rule = matching_step.conditional_rule
    verdict = condition_evaluator.evaluate(
        rule, approver_id, expense.id, group, default_percentage=default_percentage
    )
    if verdict.approves:
        finalize(expense, ExpenseStatus.APPROVED)
        if verdict.kind is condition_evaluator.VerdictKind.AUTO_APPROVE:
            message = "Expense auto-approved due to specific approver rule"
        else:
            message = f"Expense approved by reaching {verdict.percentage}% (>= {verdict.required}%)"
        logger.info(f"Expense {expense.id} approved by rule {rule.id}: {verdict.kind.value}")
        return AdvanceResult(Transition.RULE_APPROVED, expense.status, message)

    approved = count_approved(expense.id, [step.id for step in group])
    if approved >= len(group):
        return move_past_group(expense, matching_step)

    logger.info(f"Expense {expense.id} waiting: {approved}/{len(group)} approvals in group")
    return AdvanceResult(
        Transition.WAITING,
        expense.status,
        "Approval recorded; waiting for other approvers in group",
    )
