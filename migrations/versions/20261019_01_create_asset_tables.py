"""create groups, accounts, strategies and assets tables

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("configs", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("group_id", sa.String(length=36), sa.ForeignKey("groups.id"), nullable=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), unique=True),
        sa.Column("used_capacity", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("configs", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_accounts_group_id", "accounts", ["group_id"])

    op.create_table(
        "strategies",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("key", sa.String(length=32), nullable=False, server_default="local"),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("intro", sa.String(length=255)),
        sa.Column("configs", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "group_strategy",
        sa.Column("group_id", sa.String(length=36), primary_key=True),
        sa.Column("strategy_id", sa.String(length=36), primary_key=True),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["strategy_id"], ["strategies.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "assets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("strategy_id", sa.String(length=36), sa.ForeignKey("strategies.id"), nullable=True),
        sa.Column("key", sa.String(length=64), nullable=False, unique=True),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("relative_path", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255)),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(length=64)),
        sa.Column("extension", sa.String(length=32)),
        sa.Column("checksum_md5", sa.String(length=32)),
        sa.Column("checksum_sha1", sa.String(length=40)),
        sa.Column("visibility", sa.String(length=16), nullable=False, server_default="private"),
        sa.Column("storage_provider", sa.String(length=32), nullable=False, server_default="local"),
        sa.Column("public_url", sa.String(length=1024), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_assets_owner_id", "assets", ["owner_id"])
    op.create_index("ix_assets_group_id", "assets", ["group_id"])
    op.create_index("ix_assets_strategy_id", "assets", ["strategy_id"])
    op.create_index("ix_assets_relative_path", "assets", ["relative_path"])


def downgrade() -> None:
    op.drop_index("ix_assets_relative_path", table_name="assets")
    op.drop_index("ix_assets_strategy_id", table_name="assets")
    op.drop_index("ix_assets_group_id", table_name="assets")
    op.drop_index("ix_assets_owner_id", table_name="assets")
    op.drop_table("assets")
    op.drop_table("group_strategy")
    op.drop_table("strategies")
    op.drop_index("ix_accounts_group_id", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("groups")
