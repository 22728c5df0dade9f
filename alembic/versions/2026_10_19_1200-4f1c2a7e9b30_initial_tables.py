# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""initial_tables

Revision ID: 4f1c2a7e9b30
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel.sql.sqltypes

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f1c2a7e9b30"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "accounts",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("uid", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("role_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("nick_name", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("server_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("channel_id", sa.Integer(), nullable=True),
        sa.Column("user_token", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("oauth_token", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("u8_token", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index(op.f("ix_accounts_uid"), "accounts", ["uid"], unique=False)

    op.create_table(
        "gacha_pulls",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uid", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("banner_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("banner_name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("item_name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("item_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("rarity", sa.Integer(), nullable=False),
        sa.Column("pulled_at", sa.BigInteger(), nullable=False),
        sa.Column("seq_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("pool_type", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("is_free", sa.Boolean(), nullable=False),
        sa.Column("is_new", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["uid"], ["accounts.uid"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_gacha_pulls_id"), "gacha_pulls", ["id"], unique=False)
    op.create_index(op.f("ix_gacha_pulls_uid"), "gacha_pulls", ["uid"], unique=False)
    op.create_index(op.f("ix_gacha_pulls_seq_id"), "gacha_pulls", ["seq_id"], unique=False)
    op.create_index(
        "ix_gacha_pulls_uid_pulled_at", "gacha_pulls", ["uid", "pulled_at"], unique=False
    )
    op.create_index(
        "ix_gacha_pulls_uid_seq_pool_type",
        "gacha_pulls",
        ["uid", "seq_id", "pool_type"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_gacha_pulls_uid_seq_pool_type", table_name="gacha_pulls")
    op.drop_index("ix_gacha_pulls_uid_pulled_at", table_name="gacha_pulls")
    op.drop_index(op.f("ix_gacha_pulls_seq_id"), table_name="gacha_pulls")
    op.drop_index(op.f("ix_gacha_pulls_uid"), table_name="gacha_pulls")
    op.drop_index(op.f("ix_gacha_pulls_id"), table_name="gacha_pulls")
    op.drop_table("gacha_pulls")
    op.drop_index(op.f("ix_accounts_uid"), table_name="accounts")
    op.drop_table("accounts")
