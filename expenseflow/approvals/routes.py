"""Approver dashboard routes."""
from __future__ import annotations

from typing import Any

from flask import request

from expenseflow.errors import ValidationError
from expenseflow.services import approval_engine
from expenseflow.utils.helpers import json_response

from . import approvals_bp


@approvals_bp.route("", methods=["GET"])
def pending_approvals() -> Any:
    """Return pending expenses the given approver may act on."""
    approver_id = request.args.get("approverId")
    if not approver_id:
        raise ValidationError("approverId required")
    return json_response(approval_engine.list_pending_for(approver_id))
