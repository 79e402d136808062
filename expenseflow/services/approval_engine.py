"""Approval engine: process decisions, escalate, and list pending work."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import lazyload

from expenseflow.errors import (
    ApprovalError,
    ConflictError,
    NoActiveStepError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from expenseflow.models import (
    ApprovalFlow,
    AuditLog,
    Expense,
    ExpenseStatus,
    FlowStep,
    User,
    db,
)
from expenseflow.services import flow_advancer
from expenseflow.services.authorization import find_matching_step
from expenseflow.services.decision_recorder import record_decision
from expenseflow.services.flow_advancer import AdvanceResult, Transition
from expenseflow.services.locks import expense_locks
from expenseflow.utils.helpers import parse_decision, parse_id

logger = logging.getLogger(__name__)


@contextmanager
def _transaction(description: str) -> Iterator[None]:
    """Commit on success; roll back everything staged on any failure."""
    try:
        yield
        db.session.commit()
    except ApprovalError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception(f"Storage failure while {description}")
        raise ServerError("Server error") from exc
    except Exception as exc:
        db.session.rollback()
        logger.exception(f"Unexpected failure while {description}")
        raise ServerError("Server error") from exc


def _lock_expense(expense_id: int) -> Expense:
    """Re-read the expense row under a row-level lock."""
    expense = (
        Expense.query.options(lazyload("*"))
        .filter_by(id=expense_id)
        .with_for_update(of=Expense)
        .populate_existing()
        .first()
    )
    if expense is None:
        raise NotFoundError("Expense not found")
    return expense


def _current_step(expense: Expense) -> FlowStep:
    step = db.session.get(FlowStep, expense.current_flow_step_id)
    if step is None:
        raise NotFoundError("Current flow step not found")
    return step


def _default_percentage() -> int:
    return int(current_app.config.get("APPROVAL_DEFAULT_PERCENTAGE", 100))


def process_decision(
    expense_id: Any,
    approver_id: Any,
    decision: Any,
    comment: Optional[str] = None,
) -> AdvanceResult:
    """Record an approver's decision and apply the resulting transition.

    Raises ValidationError, NotFoundError, ConflictError, NoActiveStepError,
    UnauthorizedError or ServerError. Nothing is persisted unless the whole
    sequence succeeds.
    """
    expense_id = parse_id(expense_id, "expenseId")
    approver_id = parse_id(approver_id, "approverId")
    decision = parse_decision(decision)

    with expense_locks.hold(expense_id), _transaction(f"processing decision on expense {expense_id}"):
        expense = _lock_expense(expense_id)
        if expense.status.is_terminal:
            raise ConflictError(f"Expense is already {expense.status.value.lower()}")
        if expense.current_flow_step_id is None or expense.status != ExpenseStatus.PENDING:
            raise NoActiveStepError("Expense has no assigned approval step")

        step = _current_step(expense)
        group = flow_advancer.load_group(step)

        approver = db.session.get(User, approver_id)
        if approver is None:
            raise NotFoundError("Approver user not found")
        submitter = db.session.get(User, expense.submitter_user_id)

        matching_step = find_matching_step(group, approver, submitter)
        if matching_step is None:
            logger.warning(f"User {approver_id} is not authorized for any step in expense {expense_id}'s group")
            raise UnauthorizedError("Not authorized to approve this step")

        recorded = record_decision(expense_id, matching_step.id, approver_id, decision, comment)
        if not recorded.created:
            return AdvanceResult(
                Transition.DUPLICATE,
                expense.status,
                "Decision already recorded for this step",
            )

        result = flow_advancer.apply_decision(
            expense,
            matching_step,
            group,
            decision,
            approver_id,
            default_percentage=_default_percentage(),
        )
        AuditLog.record(
            "expense",
            expense.id,
            f"decision.{result.transition.value.lower()}",
            user_id=approver_id,
            step_id=matching_step.id,
            decision=decision.value,
            status=expense.status.value,
            next_step_id=expense.current_flow_step_id,
        )
    return result


def escalate(expense_id: Any) -> AdvanceResult:
    """Force the expense past its current group without recording a decision."""
    expense_id = parse_id(expense_id, "expenseId")

    with expense_locks.hold(expense_id), _transaction(f"escalating expense {expense_id}"):
        expense = _lock_expense(expense_id)
        if expense.status.is_terminal:
            raise ConflictError(f"Expense is already {expense.status.value.lower()}")
        if expense.current_flow_step_id is None or expense.status != ExpenseStatus.PENDING:
            return AdvanceResult(
                Transition.NO_ACTIVE_STEP,
                expense.status,
                "Expense has no active approval step",
            )

        step = _current_step(expense)
        result = flow_advancer.move_past_group(expense, step)
        if result.transition is Transition.ADVANCED:
            result.message = "Escalated to next approval group"
        else:
            result.message = "Expense approved (end of flow) via escalate"
        logger.info(f"Expense {expense_id} escalated past step {step.id}")
        AuditLog.record(
            "expense",
            expense.id,
            f"escalation.{result.transition.value.lower()}",
            from_step_id=step.id,
            status=expense.status.value,
            next_step_id=expense.current_flow_step_id,
        )
    return result


def list_pending_for(approver_id: Any) -> List[Dict[str, Any]]:
    """Pending expenses whose active group contains a step this approver may act on."""
    approver_id = parse_id(approver_id, "approverId")
    approver = db.session.get(User, approver_id)
    if approver is None:
        raise NotFoundError("Approver user not found")

    pending = (
        Expense.query.filter(
            Expense.status == ExpenseStatus.PENDING,
            Expense.current_flow_step_id.isnot(None),
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .all()
    )

    results = []
    for expense in pending:
        step = db.session.get(FlowStep, expense.current_flow_step_id)
        if step is None:
            continue
        submitter = expense.submitter
        matching_step = find_matching_step(flow_advancer.load_group(step), approver, submitter)
        if matching_step is not None:
            results.append(
                {
                    "expense": expense.to_dict(),
                    "step": matching_step.to_dict(),
                    "submitter": submitter.to_dict() if submitter else None,
                }
            )
    return results


def initial_step_for(company_id: int) -> Optional[FlowStep]:
    """First step of the company's flow: default flow first, else the oldest."""
    flow = (
        ApprovalFlow.query.filter_by(company_id=company_id)
        .order_by(ApprovalFlow.is_default.desc(), ApprovalFlow.created_at, ApprovalFlow.id)
        .first()
    )
    if flow is None:
        return None
    return (
        FlowStep.query.filter_by(flow_id=flow.id)
        .order_by(FlowStep.step_order, FlowStep.id)
        .first()
    )


def submit_expense(
    submitter_id: Any,
    amount: Decimal,
    currency_code: Optional[str] = None,
    category: Optional[str] = None,
    description: Optional[str] = None,
    date_spent: Optional[date] = None,
) -> Expense:
    """Create a Pending expense positioned on its flow's first group.

    With no flow configured the expense stays Pending with no active step.
    """
    submitter_id = parse_id(submitter_id, "userId")
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be positive.", code="INVALID_FIELD")

    with _transaction(f"submitting expense for user {submitter_id}"):
        submitter = db.session.get(User, submitter_id)
        if submitter is None:
            raise NotFoundError("Submitter user not found")

        first_step = initial_step_for(submitter.company_id)
        expense = Expense(
            company_id=submitter.company_id,
            submitter_user_id=submitter.id,
            amount=amount,
            currency_code=(currency_code or current_app.config.get("DEFAULT_CURRENCY", "USD")).upper(),
            category=category,
            description=description,
            date_spent=date_spent or date.today(),
            status=ExpenseStatus.PENDING,
            current_flow_step_id=first_step.id if first_step else None,
        )
        db.session.add(expense)
        db.session.flush()

        if first_step is None:
            logger.warning(f"Expense {expense.id} submitted without an approval flow for company {submitter.company_id}")
        else:
            logger.info(f"Expense {expense.id} submitted; first step {first_step.id}")
        AuditLog.record(
            "expense",
            expense.id,
            "submitted",
            user_id=submitter.id,
            current_flow_step_id=expense.current_flow_step_id,
        )
    return expense


def get_expense_detail(expense_id: Any) -> Dict[str, Any]:
    """Expense with its decision history, each decision carrying approver and step."""
    expense_id = parse_id(expense_id, "expenseId")
    expense = db.session.get(Expense, expense_id)
    if expense is None:
        raise NotFoundError("Expense not found")

    approvals = []
    for approval in sorted(expense.approvals, key=lambda a: a.id):
        row = approval.to_dict()
        row["approver"] = approval.approver.to_dict() if approval.approver else None
        row["step"] = approval.step.to_dict() if approval.step else None
        approvals.append(row)

    return {"expense": expense.to_dict(), "approvals": approvals}
