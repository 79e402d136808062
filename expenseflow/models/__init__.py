"""Application data models exposed for easy imports."""
from expenseflow import db  # noqa: F401
from .company import Company  # noqa: F401
from .user import User, UserRole, EmployeeProfile  # noqa: F401
from .expense import Expense, ExpenseStatus  # noqa: F401
from .approval import (
    AmountThresholdCondition,
    ApprovalDecisionStatus,
    ApprovalFlow,
    ApprovalRule,
    ConditionKind,
    ConditionType,
    ExpenseApproval,
    FlowStep,
    LogicOperator,
    PercentageCondition,
    RuleCondition,
    SpecificUserCondition,
)  # noqa: F401
from .audit import AuditLog  # noqa: F401

__all__ = [
    "db",
    "Company",
    "User",
    "UserRole",
    "EmployeeProfile",
    "Expense",
    "ExpenseStatus",
    "ApprovalDecisionStatus",
    "ApprovalFlow",
    "FlowStep",
    "ApprovalRule",
    "RuleCondition",
    "ConditionType",
    "LogicOperator",
    "ConditionKind",
    "PercentageCondition",
    "SpecificUserCondition",
    "AmountThresholdCondition",
    "ExpenseApproval",
    "AuditLog",
]
