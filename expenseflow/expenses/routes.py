"""Expense routes: submit, inspect, decide and escalate."""
from __future__ import annotations

from typing import Any

from flask import current_app

from expenseflow.errors import ApprovalError, ServerError
from expenseflow.services import approval_engine
from expenseflow.utils.helpers import (
    json_payload,
    json_response,
    parse_amount,
    parse_date,
    require_fields,
)

from . import expenses_bp


@expenses_bp.route("", methods=["POST"])
def submit_expense() -> Any:
    """Create a Pending expense and place it on its flow's first group."""
    payload = json_payload()
    require_fields(payload, ("userId", "amount"))

    expense = approval_engine.submit_expense(
        payload["userId"],
        parse_amount(payload["amount"]),
        currency_code=payload.get("currencyCode"),
        category=payload.get("category"),
        description=payload.get("description"),
        date_spent=parse_date(payload.get("expenseDate"), "expenseDate"),
    )
    return json_response(
        {
            "id": expense.id,
            "status": expense.status.value,
            "currentFlowStepId": expense.current_flow_step_id,
        },
        status=201,
    )


@expenses_bp.route("/<int:expense_id>", methods=["GET"])
def expense_detail(expense_id: int) -> Any:
    """Return an expense with its approval history."""
    return json_response(approval_engine.get_expense_detail(expense_id))


@expenses_bp.route("/<int:expense_id>/approvals", methods=["POST"])
def submit_decision(expense_id: int) -> Any:
    """Record an Approved/Rejected decision from an approver."""
    payload = json_payload()
    require_fields(payload, ("approverId", "action"))

    try:
        result = approval_engine.process_decision(
            expense_id,
            payload["approverId"],
            payload["action"],
            comment=payload.get("comments"),
        )
    except ApprovalError:
        raise
    except Exception as exc:
        current_app.logger.exception("Error processing approval for expense %s", expense_id)
        raise ServerError("Server error") from exc
    return json_response(result.to_dict())


@expenses_bp.route("/<int:expense_id>/escalate", methods=["POST"])
def escalate_expense(expense_id: int) -> Any:
    """Force the expense past its active approval group."""
    try:
        result = approval_engine.escalate(expense_id)
    except ApprovalError:
        raise
    except Exception as exc:
        current_app.logger.exception("Error escalating expense %s", expense_id)
        raise ServerError("Server error") from exc
    return json_response(result.to_dict())
