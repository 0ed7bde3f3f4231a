"""cash drawer core

Revision ID: 0001_cash_drawer_core
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_cash_drawer_core"
down_revision = None
branch_labels = None
depends_on = None


MONEY = sa.Numeric(12, 2)


def upgrade() -> None:
    op.create_table(
        "cashier_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("cashier_id", sa.Integer(), nullable=False),
        sa.Column("outlet_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("opening_balance", MONEY, nullable=False),
        sa.Column("closing_balance", MONEY, nullable=True),
        sa.Column("expected_balance", MONEY, nullable=True),
        sa.Column("variance", MONEY, nullable=True),
        sa.Column("opening_time", sa.DateTime(), nullable=False),
        sa.Column("closing_time", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cashier_sessions_cashier_id", "cashier_sessions", ["cashier_id"])
    op.create_index("ix_cashier_sessions_outlet_id", "cashier_sessions", ["outlet_id"])
    op.create_index(
        "uq_cashier_sessions_open_per_cashier_outlet",
        "cashier_sessions",
        ["cashier_id", "outlet_id"],
        unique=True,
        sqlite_where=sa.text("status = 'OPEN'"),
        postgresql_where=sa.text("status = 'OPEN'"),
    )

    op.create_table(
        "cash_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("cashier_sessions.id"), nullable=False),
        sa.Column("outlet_id", sa.Integer(), nullable=False),
        sa.Column("cashier_id", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(length=32), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("amount_in", MONEY, nullable=True),
        sa.Column("amount_out", MONEY, nullable=True),
        sa.Column("payment_method", sa.String(length=32), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("reference_number", sa.String(length=64), nullable=True),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("client_transaction_id", sa.String(length=64), nullable=True),
        sa.Column("transaction_date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_cash_transactions_session_id", "cash_transactions", ["session_id"])
    op.create_index("ix_cash_transactions_outlet_id", "cash_transactions", ["outlet_id"])
    op.create_index("ix_cash_transactions_cashier_id", "cash_transactions", ["cashier_id"])
    op.create_index("ix_cash_transactions_transaction_type", "cash_transactions", ["transaction_type"])
    op.create_index("ix_cash_transactions_transaction_date", "cash_transactions", ["transaction_date"])

    op.create_table(
        "idempotency_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("scope", sa.String(length=64), nullable=False),
        sa.Column("endpoint", sa.String(length=255), nullable=False),
        sa.Column("method", sa.String(length=10), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_hash", sa.String(length=64), nullable=False),
        sa.Column("state", sa.String(length=20), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("scope", "endpoint", "method", "idempotency_key", name="uq_idempotency"),
    )
    op.create_index("ix_idempotency_records_scope", "idempotency_records", ["scope"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("outlet_id", sa.Integer(), nullable=True),
        sa.Column("cashier_id", sa.Integer(), nullable=True),
        sa.Column("trace_id", sa.String(length=64), nullable=True),
        sa.Column("actor", sa.String(length=150), nullable=False),
        sa.Column("action", sa.String(length=255), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=True),
        sa.Column("before_payload", sa.JSON(), nullable=True),
        sa.Column("after_payload", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("result", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_events_outlet_id", "audit_events", ["outlet_id"])
    op.create_index("ix_audit_events_cashier_id", "audit_events", ["cashier_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_cashier_id", table_name="audit_events")
    op.drop_index("ix_audit_events_outlet_id", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_idempotency_records_scope", table_name="idempotency_records")
    op.drop_table("idempotency_records")
    for column in ("transaction_date", "transaction_type", "cashier_id", "outlet_id", "session_id"):
        op.drop_index(f"ix_cash_transactions_{column}", table_name="cash_transactions")
    op.drop_table("cash_transactions")
    op.drop_index("uq_cashier_sessions_open_per_cashier_outlet", table_name="cashier_sessions")
    op.drop_index("ix_cashier_sessions_outlet_id", table_name="cashier_sessions")
    op.drop_index("ix_cashier_sessions_cashier_id", table_name="cashier_sessions")
    op.drop_table("cashier_sessions")
