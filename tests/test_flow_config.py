import pytest

from expenseflow.errors import NotFoundError, ValidationError
from expenseflow.models import ApprovalFlow, ConditionType, ExpenseStatus, LogicOperator, UserRole
from expenseflow.services import flow_config


def test_create_flow_orders_steps(org):
    flow = flow_config.create_flow(
        org.company.id,
        "Travel",
        [
            {"stepOrder": 2, "approverUserId": org.director.id},
            {"stepOrder": 1, "isManagerApprover": True},
            {"stepOrder": 1, "approverRole": "admin"},
        ],
        is_default=True,
    )

    assert [step.step_order for step in flow.steps] == [1, 1, 2]
    assert flow.steps[1].approver_role is UserRole.ADMIN
    assert flow.is_default is True


def test_new_default_flow_replaces_previous(org):
    first = flow_config.create_flow(org.company.id, "Old", [{"isManagerApprover": True}], is_default=True)
    second = flow_config.create_flow(org.company.id, "New", [{"isManagerApprover": True}], is_default=True)

    defaults = ApprovalFlow.query.filter_by(company_id=org.company.id, is_default=True).all()
    assert [flow.id for flow in defaults] == [second.id]
    assert [flow.id for flow in flow_config.list_flows(org.company.id)] == [first.id, second.id]


@pytest.mark.parametrize(
    "steps",
    [[], [{"stepOrder": 1}], [{"approverRole": "intern"}], ["manager"], [{"stepOrder": "first", "isManagerApprover": True}]],
)
def test_create_flow_rejects_bad_steps(org, steps):
    with pytest.raises(ValidationError):
        flow_config.create_flow(org.company.id, "Broken", steps)


def test_create_flow_checks_references(org):
    with pytest.raises(NotFoundError):
        flow_config.create_flow(999, "Nowhere", [{"isManagerApprover": True}])
    with pytest.raises(NotFoundError):
        flow_config.create_flow(org.company.id, "Ghost", [{"approverUserId": 999}])
    with pytest.raises(NotFoundError):
        flow_config.create_flow(org.company.id, "No rule", [{"isManagerApprover": True, "conditionalRuleId": 999}])


def test_create_rule_keeps_condition_order(org):
    rule = flow_config.create_rule(
        org.company.id,
        "CFO shortcut",
        [
            {"conditionType": "AutoApprove", "conditionValue": org.director.id, "logicOperator": "or"},
            {"conditionType": "Percentage", "conditionValue": 60},
        ],
        description="Director signs off alone",
    )

    assert [c.condition_type for c in rule.conditions] == [ConditionType.SPECIFIC_USER, ConditionType.PERCENTAGE]
    assert rule.conditions[0].condition_value == str(org.director.id)
    assert rule.conditions[0].logic_operator is LogicOperator.OR
    assert rule.conditions[1].logic_operator is LogicOperator.NONE
    assert rule.success_outcome is ExpenseStatus.APPROVED
    assert [r.id for r in flow_config.list_rules(org.company.id)] == [rule.id]


def test_create_rule_validates_input(org):
    with pytest.raises(ValidationError):
        flow_config.create_rule(org.company.id, "", [])
    with pytest.raises(ValidationError):
        flow_config.create_rule(org.company.id, "Odd", [{"conditionType": "Quorum"}])
    with pytest.raises(ValidationError):
        flow_config.create_rule(org.company.id, "Odd", [], success_outcome="Pending")


@pytest.mark.parametrize("outcome", ["Rejected", "Pending", "Draft"])
def test_create_rule_only_accepts_approved_outcome(org, outcome):
    with pytest.raises(ValidationError):
        flow_config.create_rule(org.company.id, "Odd", [], success_outcome=outcome)
    assert flow_config.create_rule(org.company.id, "Plain", [], success_outcome="approved").success_outcome is ExpenseStatus.APPROVED
