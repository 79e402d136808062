"""Create and list the approval flows and rules the engine reads."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from expenseflow.errors import NotFoundError, ValidationError
from expenseflow.models import (
    ApprovalFlow,
    ApprovalRule,
    Company,
    ConditionType,
    ExpenseStatus,
    FlowStep,
    LogicOperator,
    RuleCondition,
    User,
    UserRole,
    db,
)
from expenseflow.utils.helpers import parse_id

logger = logging.getLogger(__name__)


def _company(company_id: Any) -> Company:
    company = db.session.get(Company, parse_id(company_id, "companyId"))
    if company is None:
        raise NotFoundError("Company not found")
    return company


def _build_step(company: Company, raw: Dict[str, Any]) -> FlowStep:
    if not isinstance(raw, dict):
        raise ValidationError("Each step must be an object.", code="INVALID_FIELD")
    try:
        step_order = int(raw.get("stepOrder", 1))
    except (TypeError, ValueError):
        raise ValidationError("Invalid 'stepOrder'.", code="INVALID_FIELD") from None

    approver_role = None
    if raw.get("approverRole"):
        try:
            approver_role = UserRole[str(raw["approverRole"]).upper()]
        except KeyError:
            raise ValidationError("Unsupported role.", code="INVALID_FIELD") from None

    approver_user_id = None
    if raw.get("approverUserId") is not None:
        approver_user_id = parse_id(raw["approverUserId"], "approverUserId")
        if db.session.get(User, approver_user_id) is None:
            raise NotFoundError("Approver user not found")

    rule_id = None
    if raw.get("conditionalRuleId") is not None:
        rule_id = parse_id(raw["conditionalRuleId"], "conditionalRuleId")
        rule = db.session.get(ApprovalRule, rule_id)
        if rule is None or rule.company_id != company.id:
            raise NotFoundError("Approval rule not found")

    is_manager = bool(raw.get("isManagerApprover"))
    if not (is_manager or approver_role or approver_user_id):
        raise ValidationError(
            "Each step needs a manager flag, an approver role or an approver user.",
            code="INVALID_FIELD",
        )

    return FlowStep(
        step_order=step_order,
        is_manager_approver=is_manager,
        approver_role=approver_role,
        approver_user_id=approver_user_id,
        conditional_rule_id=rule_id,
    )


def create_flow(
    company_id: Any,
    name: Optional[str],
    steps: Iterable[Dict[str, Any]],
    is_default: bool = False,
) -> ApprovalFlow:
    """Persist an approval flow with its steps."""
    if not name or not str(name).strip():
        raise ValidationError("Missing fields: name")
    company = _company(company_id)
    steps = list(steps or [])
    if not steps:
        raise ValidationError("Missing fields: steps")

    flow = ApprovalFlow(company_id=company.id, name=str(name).strip(), is_default=bool(is_default))
    flow.steps = [_build_step(company, raw) for raw in steps]

    if flow.is_default:
        ApprovalFlow.query.filter_by(company_id=company.id, is_default=True).update({"is_default": False})

    db.session.add(flow)
    db.session.commit()
    logger.info(f"Approval flow {flow.id} created for company {company.id} with {len(flow.steps)} steps")
    return flow


def create_rule(
    company_id: Any,
    name: Optional[str],
    conditions: Iterable[Dict[str, Any]] = (),
    description: Optional[str] = None,
    success_outcome: Optional[str] = None,
) -> ApprovalRule:
    """Persist a conditional rule with its conditions in the given order."""
    if not name or not str(name).strip():
        raise ValidationError("Missing fields: name")
    company = _company(company_id)

    outcome = ExpenseStatus.APPROVED
    if success_outcome:
        try:
            outcome = ExpenseStatus[str(success_outcome).upper()]
        except KeyError:
            outcome = None
        if outcome is not ExpenseStatus.APPROVED:
            raise ValidationError("Success outcome must be 'Approved'.", code="INVALID_FIELD")

    rule = ApprovalRule(
        company_id=company.id,
        name=str(name).strip(),
        description=description,
        success_outcome=outcome,
    )
    for raw in conditions or []:
        if not isinstance(raw, dict):
            raise ValidationError("Each condition must be an object.", code="INVALID_FIELD")
        try:
            condition_type = ConditionType.parse(raw.get("conditionType", "Percentage"))
        except KeyError:
            raise ValidationError("Unsupported condition type.", code="INVALID_FIELD") from None
        try:
            operator = LogicOperator[str(raw.get("logicOperator") or "NONE").upper()]
        except KeyError:
            raise ValidationError("Unsupported logic operator.", code="INVALID_FIELD") from None
        value = raw.get("conditionValue")
        rule.conditions.append(
            RuleCondition(
                condition_type=condition_type,
                condition_value="" if value is None else str(value),
                logic_operator=operator,
            )
        )

    db.session.add(rule)
    db.session.commit()
    logger.info(f"Approval rule {rule.id} created for company {company.id} with {len(rule.conditions)} conditions")
    return rule


def list_flows(company_id: Any = None) -> List[ApprovalFlow]:
    query = ApprovalFlow.query
    if company_id is not None:
        query = query.filter_by(company_id=parse_id(company_id, "companyId"))
    return query.order_by(ApprovalFlow.created_at, ApprovalFlow.id).all()


def list_rules(company_id: Any = None) -> List[ApprovalRule]:
    query = ApprovalRule.query
    if company_id is not None:
        query = query.filter_by(company_id=parse_id(company_id, "companyId"))
    return query.order_by(ApprovalRule.created_at, ApprovalRule.id).all()
