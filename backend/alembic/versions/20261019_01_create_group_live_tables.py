"""create group live tables

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19 00:00:00.000000
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
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=128), nullable=False),
        sa.Column("subtitle", sa.String(length=512), nullable=True),
        sa.Column("owner_id", sa.String(length=128), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("members_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("members_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("live_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("live_host_id", sa.String(length=128), nullable=True),
        sa.Column("live_host_name", sa.String(length=128), nullable=True),
        sa.Column("live_host_photo", sa.String(length=1024), nullable=True),
        sa.Column("live_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("live_ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("live_ended_reason", sa.String(length=32), nullable=True),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_groups_updated_at", "groups", ["updated_at"])
    op.create_index("ix_groups_live_active", "groups", ["live_active"])

    op.create_table(
        "group_presence",
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("active_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column("photo", sa.String(length=1024), nullable=True),
        sa.PrimaryKeyConstraint("group_id", "user_id"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_presence_active", "group_presence", ["group_id", "active_at"])

    op.create_table(
        "group_live_presence",
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("active_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column("photo", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="host"),
        sa.PrimaryKeyConstraint("group_id", "user_id"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index(
        "ix_group_live_presence_role_active",
        "group_live_presence",
        ["group_id", "role", "active_at"],
    )

    op.create_table(
        "group_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("sender_id", sa.String(length=128), nullable=False),
        sa.Column("sender_name", sa.String(length=128), nullable=True),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_messages_group_id", "group_messages", ["group_id"])

    op.create_table(
        "group_live_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("host_id", sa.String(length=128), nullable=False),
        sa.Column("sender_id", sa.String(length=128), nullable=False),
        sa.Column("sender_name", sa.String(length=128), nullable=True),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_live_messages_group_id", "group_live_messages", ["group_id"])

    op.create_table(
        "group_private_threads",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("user_a_id", sa.String(length=128), nullable=False),
        sa.Column("user_b_id", sa.String(length=128), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_group_private_threads_group_id", "group_private_threads", ["group_id"])

    op.create_table(
        "group_private_thread_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("thread_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.String(length=128), nullable=False),
        sa.Column("text", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["thread_id"], ["group_private_threads.id"], ondelete="CASCADE"
        ),
        mysql_charset="utf8mb4",
    )
    op.create_index(
        "ix_group_private_thread_messages_thread_id",
        "group_private_thread_messages",
        ["thread_id"],
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=128), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=True),
        sa.Column("photo", sa.String(length=1024), nullable=True),
        mysql_charset="utf8mb4",
    )


def downgrade() -> None:
    op.drop_table("profiles")
    op.drop_table("group_private_thread_messages")
    op.drop_table("group_private_threads")
    op.drop_table("group_live_messages")
    op.drop_table("group_messages")
    op.drop_table("group_live_presence")
    op.drop_table("group_presence")
    op.drop_table("groups")
