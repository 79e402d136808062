"""Create approval engine tables

Revision ID: 3f1c9a7d2b10
Revises: 
Create Date: 2026-10-17 09:12:44.103821

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3f1c9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('ADMIN', 'MANAGER', 'EMPLOYEE', name='user_role')
expense_status = sa.Enum('DRAFT', 'PENDING', 'APPROVED', 'REJECTED', name='expense_status')
decision_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approval_decision_status')
condition_type = sa.Enum('PERCENTAGE', 'SPECIFIC_USER', 'AMOUNT_THRESHOLD', name='condition_type')
logic_operator = sa.Enum('AND', 'OR', 'NONE', name='logic_operator')

# Second references to an already-created type must not emit CREATE TYPE again.
existing_user_role = postgresql.ENUM('ADMIN', 'MANAGER', 'EMPLOYEE', name='user_role', create_type=False)
existing_expense_status = postgresql.ENUM(
    'DRAFT', 'PENDING', 'APPROVED', 'REJECTED', name='expense_status', create_type=False
)


def upgrade():
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False, unique=True),
        sa.Column('currency_code', sa.String(length=10), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_table(
        'employee_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, unique=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
    )
    op.create_table(
        'approval_rules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('success_outcome', expense_status, nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_approval_rules_company_id', 'approval_rules', ['company_id'])
    op.create_table(
        'rule_conditions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('rule_id', sa.Integer(), sa.ForeignKey('approval_rules.id', ondelete='CASCADE'), nullable=False),
        sa.Column('condition_type', condition_type, nullable=False),
        sa.Column('condition_value', sa.String(length=255), nullable=False),
        sa.Column('logic_operator', logic_operator, nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_rule_conditions_rule_id', 'rule_conditions', ['rule_id'])
    op.create_table(
        'approval_flows',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_approval_flows_company_id', 'approval_flows', ['company_id'])
    op.create_table(
        'flow_steps',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('flow_id', sa.Integer(), sa.ForeignKey('approval_flows.id', ondelete='CASCADE'), nullable=False),
        sa.Column('step_order', sa.Integer(), nullable=False),
        sa.Column('is_manager_approver', sa.Boolean(), nullable=False),
        sa.Column('approver_role', existing_user_role, nullable=True),
        sa.Column('approver_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('conditional_rule_id', sa.Integer(), sa.ForeignKey('approval_rules.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_flow_steps_flow_id', 'flow_steps', ['flow_id'])
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('submitter_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('currency_code', sa.String(length=10), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date_spent', sa.Date(), nullable=True),
        sa.Column('status', existing_expense_status, nullable=False),
        sa.Column('current_flow_step_id', sa.Integer(), sa.ForeignKey('flow_steps.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_expenses_company_id', 'expenses', ['company_id'])
    op.create_index('ix_expenses_submitter_user_id', 'expenses', ['submitter_user_id'])
    op.create_table(
        'expense_approvals',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('expense_id', sa.Integer(), sa.ForeignKey('expenses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('step_id', sa.Integer(), sa.ForeignKey('flow_steps.id', ondelete='CASCADE'), nullable=False),
        sa.Column('approver_user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', decision_status, nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('expense_id', 'step_id', 'approver_user_id', name='unique_approval_per_step'),
    )
    op.create_index('ix_expense_approvals_expense_id', 'expense_approvals', ['expense_id'])
    op.create_index('ix_expense_approvals_step_id', 'expense_approvals', ['step_id'])
    op.create_index('ix_expense_approvals_approver_user_id', 'expense_approvals', ['approver_user_id'])
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('entity_type', sa.String(length=120), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('action', sa.String(length=120), nullable=False),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('extra_data', sa.JSON(), nullable=True),
    )
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])


def downgrade():
    for table in (
        'audit_logs',
        'expense_approvals',
        'expenses',
        'flow_steps',
        'approval_flows',
        'rule_conditions',
        'approval_rules',
        'employee_profiles',
        'users',
        'companies',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (logic_operator, condition_type, decision_status, expense_status, user_role):
        enum_type.drop(bind, checkfirst=True)
