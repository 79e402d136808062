"""Persist approval decisions, at most once per (expense, step, approver)."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from expenseflow.models import ApprovalDecisionStatus, ExpenseApproval, db

logger = logging.getLogger(__name__)


@dataclass
class RecordResult:
    approval: ExpenseApproval
    created: bool


def find_decision(expense_id: int, step_id: int, approver_id: int) -> Optional[ExpenseApproval]:
    return ExpenseApproval.query.filter_by(
        expense_id=expense_id,
        step_id=step_id,
        approver_user_id=approver_id,
    ).first()


def record_decision(
    expense_id: int,
    step_id: int,
    approver_id: int,
    decision: ApprovalDecisionStatus,
    comment: Optional[str] = None,
) -> RecordResult:
    """Stage a decision row; an existing row for the same tuple wins.

    Callers hold the per-expense lock, so the existence check cannot race
    another writer for the same expense. Nothing is committed here.
    """
    existing = find_decision(expense_id, step_id, approver_id)
    if existing is not None:
        logger.info(
            f"Duplicate decision ignored for expense {expense_id}, step {step_id}, approver {approver_id}"
        )
        return RecordResult(approval=existing, created=False)

    approval = ExpenseApproval(
        expense_id=expense_id,
        step_id=step_id,
        approver_user_id=approver_id,
        status=decision,
        comment=comment,
        approved_at=datetime.now(timezone.utc) if decision == ApprovalDecisionStatus.APPROVED else None,
    )
    db.session.add(approval)
    db.session.flush()
    return RecordResult(approval=approval, created=True)


def count_approved(expense_id: int, step_ids: list[int]) -> int:
    """Count APPROVED decisions on ``expense_id`` recorded against any of ``step_ids``."""
    if not step_ids:
        return 0
    return ExpenseApproval.query.filter(
        ExpenseApproval.expense_id == expense_id,
        ExpenseApproval.status == ApprovalDecisionStatus.APPROVED,
        ExpenseApproval.step_id.in_(step_ids),
    ).count()
