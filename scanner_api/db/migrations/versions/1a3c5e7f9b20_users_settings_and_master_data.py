"""Initial schema: users, sessions, master data, settings and Toyota API config.

- users
- user_sessions
- warehouses
- offices
- toyota_api_configs
- site_settings
- dock_monitor_settings
- internal_kanban_settings
- internal_kanban_exclusions
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "1a3c5e7f9b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID_DEFAULT = sa.text("uuid_generate_v4()")
NOW = sa.text("now()")


def _timestamps() -> List[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
    ]


def _audit() -> List[sa.Column]:
    return [
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("updated_by", sa.String(100), nullable=True),
    ]


def upgrade() -> None:
    # Extensions
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp";')

    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("nick_name", sa.String(50), nullable=True),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("notification_name", sa.String(100), nullable=True),
        sa.Column("notification_email", sa.String(100), nullable=True),
        sa.Column("supervisor", sa.String(100), nullable=True),
        sa.Column("role", sa.String(50), nullable=False, server_default="Operator"),
        sa.Column("menu_level", sa.String(50), nullable=True),
        sa.Column("operation", sa.String(50), nullable=True),
        sa.Column("code", sa.String(50), nullable=True),
        sa.Column("location_id", sa.String(50), nullable=True),
        sa.Column("is_supervisor", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    # User sessions
    op.create_table(
        "user_sessions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.Index("ix_user_sessions_user_id", "user_id"),
    )

    # Warehouses
    op.create_table(
        "warehouses",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("contact_name", sa.String(100), nullable=True),
        sa.Column("contact_email", sa.String(100), nullable=True),
        sa.Column("office_code", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        *_audit(),
        sa.UniqueConstraint("code", name="uq_warehouses_code"),
    )

    # Offices
    op.create_table(
        "offices",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(50), nullable=True),
        sa.Column("zip", sa.String(20), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("contact", sa.String(100), nullable=True),
        sa.Column("email", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        *_audit(),
        sa.UniqueConstraint("code", name="uq_offices_code"),
    )

    # Toyota API configuration
    op.create_table(
        "toyota_api_configs",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("environment", sa.String(10), nullable=False),
        sa.Column("application_name", sa.String(100), nullable=False),
        sa.Column("client_id", sa.String(200), nullable=False),
        sa.Column("client_secret", sa.String(500), nullable=False),
        sa.Column("token_url", sa.String(500), nullable=False),
        sa.Column("api_base_url", sa.String(500), nullable=False),
        sa.Column("resource_url", sa.String(500), nullable=True),
        sa.Column("x_client_id", sa.String(200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        *_audit(),
        sa.Index("ix_toyota_api_configs_environment", "environment"),
    )

    # Site settings (single row)
    op.create_table(
        "site_settings",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("plant_location", sa.String(200), nullable=True),
        sa.Column("plant_opening_time", sa.Time(), nullable=True),
        sa.Column("plant_closing_time", sa.Time(), nullable=True),
        sa.Column("enable_pre_shipment_scan", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("dock_behind_threshold", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("dock_critical_threshold", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("dock_display_mode", sa.String(20), nullable=False, server_default="FULL"),
        sa.Column("dock_refresh_interval", sa.Integer(), nullable=False, server_default="300000"),
        sa.Column("dock_order_lookback_hours", sa.Integer(), nullable=False, server_default="36"),
        sa.Column("kanban_allow_duplicates", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("kanban_duplicate_window_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("kanban_alert_on_duplicate", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        *_audit(),
    )

    # Dock monitor settings
    op.create_table(
        "dock_monitor_settings",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("behind_threshold", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("critical_threshold", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("display_mode", sa.String(20), nullable=False, server_default="FULL"),
        sa.Column(
            "selected_locations",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("refresh_interval", sa.Integer(), nullable=False, server_default="300000"),
        *_timestamps(),
        *_audit(),
    )

    # Internal kanban settings
    op.create_table(
        "internal_kanban_settings",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("allow_duplicates", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("duplicate_window_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("alert_on_duplicate", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        *_audit(),
    )

    # Internal kanban exclusions
    op.create_table(
        "internal_kanban_exclusions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("part_number", sa.String(100), nullable=False),
        sa.Column("is_excluded", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("mode", sa.String(20), nullable=False, server_default="single"),
        *_timestamps(),
        *_audit(),
        sa.UniqueConstraint("part_number", name="uq_internal_kanban_exclusions_part_number"),
    )


def downgrade() -> None:
    op.drop_table("internal_kanban_exclusions")
    op.drop_table("internal_kanban_settings")
    op.drop_table("dock_monitor_settings")
    op.drop_table("site_settings")
    op.drop_table("toyota_api_configs")
    op.drop_table("offices")
    op.drop_table("warehouses")
    op.drop_table("user_sessions")
    op.drop_table("users")
