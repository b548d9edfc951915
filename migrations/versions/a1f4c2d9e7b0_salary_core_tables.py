"""employees, attendance and payments tables

Revision ID: a1f4c2d9e7b0
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1f4c2d9e7b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'employees',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('employee_code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('designation', sa.String(length=120), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True, unique=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('doj', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_emp_status', 'employees', ['status'], unique=False)

    op.create_table(
        'attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.String(length=64),
                  sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('check_in_time', sa.String(length=5), nullable=True),
        sa.Column('check_out_time', sa.String(length=5), nullable=True),
        sa.Column('marked_by', sa.String(length=120), nullable=True),
        sa.Column('marked_at', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.UniqueConstraint('employee_id', 'date', name='uq_attendance_emp_date'),
    )
    op.create_index('ix_attendance_employee_id', 'attendance', ['employee_id'], unique=False)
    op.create_index('ix_attendance_emp_date', 'attendance', ['employee_id', 'date'], unique=False)

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.String(length=64),
                  sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_mode', sa.String(length=16), nullable=False, server_default='Cash'),
        sa.Column('paid_by', sa.String(length=100), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_payments_employee_id', 'payments', ['employee_id'], unique=False)
    op.create_index('ix_payments_emp_date', 'payments', ['employee_id', 'payment_date'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_payments_emp_date', table_name='payments')
    op.drop_index('ix_payments_employee_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_attendance_emp_date', table_name='attendance')
    op.drop_index('ix_attendance_employee_id', table_name='attendance')
    op.drop_table('attendance')
    op.drop_index('ix_emp_status', table_name='employees')
    op.drop_table('employees')
