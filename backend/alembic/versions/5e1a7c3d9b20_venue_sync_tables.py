"""venue sync tables

Revision ID: 5e1a7c3d9b20
Revises:
Create Date: 2026-10-19 10:12:41.503112

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5e1a7c3d9b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=128), nullable=True),
        sa.Column("system_role", sa.String(length=32), nullable=False, server_default="NONE"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("manager_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(length=300), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=True),
        sa.Column("max_restaurants", sa.Integer(), nullable=True),
        sa.Column("require_approval", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_venues_manager_user_id", "venues", ["manager_user_id"])

    op.create_table(
        "restaurants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("cuisine_type", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=300), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),

        # association (active / NULL)
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="SET NULL"), nullable=True),
        sa.Column("venue_name", sa.String(length=200), nullable=True),
        sa.Column("venue_address", sa.String(length=300), nullable=True),
        sa.Column("venue_status", sa.String(length=16), nullable=True),
        sa.Column("sync_method", sa.String(length=32), nullable=True),
        sa.Column("sync_reason", sa.Text(), nullable=True),
        sa.Column("joined_venue_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("left_venue_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unsync_reason", sa.Text(), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_restaurants_owner_user_id", "restaurants", ["owner_user_id"])
    op.create_index("ix_restaurants_venue_id", "restaurants", ["venue_id"])

    op.create_table(
        "venue_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("restaurant_name", sa.String(length=200), nullable=False),
        sa.Column("restaurant_email", sa.String(length=255), nullable=True),
        sa.Column("restaurant_phone", sa.String(length=32), nullable=True),
        sa.Column("restaurant_cuisine", sa.String(length=100), nullable=True),
        sa.Column("restaurant_address", sa.String(length=300), nullable=True),
        sa.Column("restaurant_city", sa.String(length=100), nullable=True),
        sa.Column("restaurant_state", sa.String(length=100), nullable=True),
        sa.Column("venue_name", sa.String(length=200), nullable=False),
        sa.Column("venue_address", sa.String(length=300), nullable=True),
        sa.Column("venue_city", sa.String(length=100), nullable=True),
        sa.Column("venue_state", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("requested_by_user_id", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by_user_id", sa.Integer(), nullable=True),
        sa.Column("denied_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("denied_by_user_id", sa.Integer(), nullable=True),
        sa.Column("denial_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_user_id", sa.Integer(), nullable=True),
    )
    op.create_index("ix_venue_requests_restaurant_id", "venue_requests", ["restaurant_id"])
    op.create_index("ix_venue_requests_venue_id", "venue_requests", ["venue_id"])
    op.create_index("ix_venue_requests_status", "venue_requests", ["status"])
    op.create_index("ix_venue_requests_pair_status", "venue_requests", ["restaurant_id", "venue_id", "status"])
    op.create_index(
        "uq_venue_requests_pending_pair",
        "venue_requests",
        ["restaurant_id", "venue_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "venue_invitations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("venue_id", sa.Integer(), sa.ForeignKey("venues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("venue_name", sa.String(length=200), nullable=False),
        sa.Column("venue_address", sa.String(length=300), nullable=True),
        sa.Column("venue_city", sa.String(length=100), nullable=True),
        sa.Column("venue_state", sa.String(length=100), nullable=True),
        sa.Column("venue_description", sa.Text(), nullable=True),
        sa.Column("restaurant_name", sa.String(length=200), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("personal_message", sa.Text(), nullable=False, server_default=""),
        sa.Column("invite_code", sa.String(length=8), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurants.id", ondelete="SET NULL"), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_by_user_id", sa.Integer(), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_by_user_id", sa.Integer(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_user_id", sa.Integer(), nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_venue_invitations_venue_id", "venue_invitations", ["venue_id"])
    op.create_index("ix_venue_invitations_invite_code", "venue_invitations", ["invite_code"])
    op.create_index("ix_venue_invitations_status", "venue_invitations", ["status"])
    op.create_index(
        "uq_venue_invitations_pending_code",
        "venue_invitations",
        ["invite_code"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
        sqlite_where=sa.text("status = 'pending'"),
    )

    for table, owner_col, owner_table in (
        ("venue_activity", "venue_id", "venues"),
        ("restaurant_activity", "restaurant_id", "restaurants"),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(owner_col, sa.Integer(), sa.ForeignKey(f"{owner_table}.id", ondelete="CASCADE"), nullable=False),
            sa.Column("type", sa.String(length=32), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False, server_default=""),
            sa.Column("metadata", sa.JSON(), nullable=True),
            sa.Column("created_by_user_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )
        op.create_index(f"ix_{table}_{owner_col}", table, [owner_col])


def downgrade():
    op.drop_index("ix_restaurant_activity_restaurant_id", table_name="restaurant_activity")
    op.drop_table("restaurant_activity")
    op.drop_index("ix_venue_activity_venue_id", table_name="venue_activity")
    op.drop_table("venue_activity")

    op.drop_index("uq_venue_invitations_pending_code", table_name="venue_invitations")
    op.drop_index("ix_venue_invitations_status", table_name="venue_invitations")
    op.drop_index("ix_venue_invitations_invite_code", table_name="venue_invitations")
    op.drop_index("ix_venue_invitations_venue_id", table_name="venue_invitations")
    op.drop_table("venue_invitations")

    op.drop_index("uq_venue_requests_pending_pair", table_name="venue_requests")
    op.drop_index("ix_venue_requests_pair_status", table_name="venue_requests")
    op.drop_index("ix_venue_requests_status", table_name="venue_requests")
    op.drop_index("ix_venue_requests_venue_id", table_name="venue_requests")
    op.drop_index("ix_venue_requests_restaurant_id", table_name="venue_requests")
    op.drop_table("venue_requests")

    op.drop_index("ix_restaurants_venue_id", table_name="restaurants")
    op.drop_index("ix_restaurants_owner_user_id", table_name="restaurants")
    op.drop_table("restaurants")

    op.drop_index("ix_venues_manager_user_id", table_name="venues")
    op.drop_table("venues")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
