"""create users

Full user lifecycle record: verification, subscription and proxy columns.

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_create_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("CALLER", "CUSTOMER", "SUBSCRIBER", name="role")
status_enum = sa.Enum("NEW", "PENDING_VERIFICATION", "VERIFIED", "ACTIVE", name="status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phone", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("role", role_enum, nullable=False, server_default="CALLER"),
        sa.Column("status", status_enum, nullable=False, server_default="NEW"),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_attempt", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stripe_customer_id", sa.String(), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(), nullable=True),
        sa.Column("subscription_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("proxy_number", sa.String(), nullable=True),
        sa.Column("proxy_sid", sa.String(), nullable=True),
        sa.Column("forwarding_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("provisioning_pending", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_phone", "users", ["phone"], unique=True)
    op.create_index("ix_users_proxy_number", "users", ["proxy_number"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_users_proxy_number", table_name="users")
    op.drop_index("ix_users_phone", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
    role_enum.drop(op.get_bind(), checkfirst=True)
    status_enum.drop(op.get_bind(), checkfirst=True)
