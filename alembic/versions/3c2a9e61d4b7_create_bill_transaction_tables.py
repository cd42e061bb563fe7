"""create bill transaction, user and message tables

Revision ID: 3c2a9e61d4b7
Revises:
Create Date: 2025-03-14 09:41:27.518204

"""

from typing import List, Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c2a9e61d4b7"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRANSACTION_TABLES = (
    "electricity_transactions",
    "data_transactions",
    "airtime_transactions",
    "education_transactions",
    "tv_transactions",
    "smile_data_transactions",
    "spectranet_data_transactions",
)


def _common_columns() -> List[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.String(length=64), nullable=False),
        sa.Column("transaction_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("user_identifier", sa.String(length=255), nullable=False),
        sa.Column("product_descriptor", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("transaction_date", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _create_transaction_table(name: str, *family_columns: sa.Column) -> None:
    op.create_table(
        name,
        *_common_columns(),
        *family_columns,
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("amount >= 0", name=f"ck_{name}_amount"),
    )
    op.create_index(f"ix_{name}_request_id", name, ["request_id"], unique=True)
    op.create_index(f"ix_{name}_transaction_id", name, ["transaction_id"], unique=False)
    op.create_index(f"ix_{name}_status", name, ["status"], unique=False)
    op.create_index(f"ix_{name}_user_identifier", name, ["user_identifier"], unique=False)


def upgrade() -> None:
    _create_transaction_table(
        "electricity_transactions",
        sa.Column("disco_type", sa.String(length=64), nullable=False),
        sa.Column("meter_number", sa.String(length=32), nullable=False),
        sa.Column("meter_type", sa.String(length=16), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("product", sa.String(length=255), nullable=False),
        sa.Column("bill_generated", sa.String(length=255), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("token", sa.String(length=255), nullable=True),
        sa.Column("units", sa.String(length=64), nullable=True),
    )
    op.create_index(
        "ix_electricity_transactions_meter_number", "electricity_transactions", ["meter_number"], unique=False
    )

    _create_transaction_table(
        "data_transactions",
        sa.Column("network", sa.String(length=32), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("plan_code", sa.String(length=64), nullable=False),
        sa.Column("plan_name", sa.String(length=255), nullable=False),
    )

    _create_transaction_table(
        "airtime_transactions",
        sa.Column("network", sa.String(length=32), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("airtime_type", sa.String(length=32), nullable=False),
    )

    _create_transaction_table(
        "education_transactions",
        sa.Column("exam_type", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("pins", sa.Text(), nullable=True),
    )

    _create_transaction_table(
        "tv_transactions",
        sa.Column("decoder_type", sa.String(length=32), nullable=False),
        sa.Column("smartcard_number", sa.String(length=32), nullable=False),
        sa.Column("bouquet_code", sa.String(length=64), nullable=False),
        sa.Column("subscription_type", sa.String(length=16), nullable=False),
    )
    op.create_index("ix_tv_transactions_smartcard_number", "tv_transactions", ["smartcard_number"], unique=False)

    _create_transaction_table(
        "smile_data_transactions",
        sa.Column("account_id", sa.String(length=32), nullable=False),
        sa.Column("plan_code", sa.String(length=64), nullable=False),
        sa.Column("plan_name", sa.String(length=255), nullable=False),
    )
    op.create_index(
        "ix_smile_data_transactions_account_id", "smile_data_transactions", ["account_id"], unique=False
    )

    _create_transaction_table(
        "spectranet_data_transactions",
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("plan_code", sa.String(length=64), nullable=False),
        sa.Column("plan_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("pins", sa.Text(), nullable=True),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_messages_email", "messages", ["email"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_messages_email", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_smile_data_transactions_account_id", table_name="smile_data_transactions")
    op.drop_index("ix_tv_transactions_smartcard_number", table_name="tv_transactions")
    op.drop_index("ix_electricity_transactions_meter_number", table_name="electricity_transactions")
    for name in reversed(TRANSACTION_TABLES):
        op.drop_index(f"ix_{name}_user_identifier", table_name=name)
        op.drop_index(f"ix_{name}_status", table_name=name)
        op.drop_index(f"ix_{name}_transaction_id", table_name=name)
        op.drop_index(f"ix_{name}_request_id", table_name=name)
        op.drop_table(name)
