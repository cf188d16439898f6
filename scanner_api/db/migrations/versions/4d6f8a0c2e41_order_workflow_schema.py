"""Order workflow schema: uploads, orders, planned items, skid build and shipment load.

- order_uploads
- shipment_load_sessions
- orders
- planned_items
- skid_build_sessions
- skid_scans
- skid_build_exceptions
- shipment_load_exceptions
"""

from typing import List, Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4d6f8a0c2e41"
down_revision: Union[str, None] = "1a3c5e7f9b20"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID_DEFAULT = sa.text("uuid_generate_v4()")
NOW = sa.text("now()")


def _timestamps_and_audit() -> List[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("updated_by", sa.String(100), nullable=True),
    ]


def upgrade() -> None:
    # Uploaded Excel workbooks
    op.create_table(
        "order_uploads",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("uploaded_by", sa.UUID(), nullable=True),
        sa.Column("upload_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("orders_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_items_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_manifests_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("supplier_code", sa.String(20), nullable=True),
        sa.Column("plant_code", sa.String(20), nullable=True),
        sa.Column("total_planned", sa.Integer(), nullable=True),
        sa.Column("total_shipped", sa.Integer(), nullable=True),
        sa.Column("total_shorted", sa.Integer(), nullable=True),
        sa.Column("total_late", sa.Integer(), nullable=True),
        sa.Column("total_pending", sa.Integer(), nullable=True),
        *_timestamps_and_audit(),
    )

    # Shipment load sessions (created before orders, which reference them)
    op.create_table(
        "shipment_load_sessions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("route_number", sa.String(50), nullable=False),
        sa.Column("run", sa.String(2), nullable=True),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("trailer_number", sa.String(50), nullable=True),
        sa.Column("seal_number", sa.String(50), nullable=True),
        sa.Column("lp_code", sa.String(6), nullable=True),
        sa.Column("driver_first_name", sa.String(9), nullable=True),
        sa.Column("driver_last_name", sa.String(12), nullable=True),
        sa.Column("supplier_first_name", sa.String(9), nullable=True),
        sa.Column("supplier_last_name", sa.String(12), nullable=True),
        sa.Column("pickup_date_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("supplier_code", sa.String(5), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("created_via", sa.String(20), nullable=False, server_default="ShipmentLoad"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("toyota_confirmation_number", sa.String(100), nullable=True),
        sa.Column("toyota_status", sa.String(20), nullable=True),
        sa.Column("toyota_error_message", sa.Text(), nullable=True),
        sa.Column("toyota_submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps_and_audit(),
        sa.Index("ix_shipment_load_sessions_route_number", "route_number"),
    )

    # Orders
    op.create_table(
        "orders",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("real_order_number", sa.String(50), nullable=False),
        sa.Column("dock_code", sa.String(10), nullable=False),
        sa.Column("transmit_date", sa.Date(), nullable=True),
        sa.Column("supplier_code", sa.String(20), nullable=True),
        sa.Column("plant_code", sa.String(20), nullable=True),
        sa.Column("upload_id", sa.UUID(), nullable=True),
        sa.Column("unload_date", sa.Date(), nullable=True),
        sa.Column("unload_time", sa.Time(), nullable=True),
        sa.Column("planned_pickup", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_route", sa.String(50), nullable=True),
        sa.Column("main_route", sa.String(50), nullable=True),
        sa.Column("specialist_code", sa.Integer(), nullable=True),
        sa.Column("mros", sa.Integer(), nullable=True),
        sa.Column("actual_route", sa.String(50), nullable=True),
        sa.Column("actual_pickup_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("trailer", sa.String(50), nullable=True),
        sa.Column("seal_number", sa.String(50), nullable=True),
        sa.Column("driver_name", sa.String(100), nullable=True),
        sa.Column("carrier_name", sa.String(100), nullable=True),
        sa.Column("shipment_confirmation", sa.String(100), nullable=True),
        sa.Column("shipment_loaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipment_notes", sa.Text(), nullable=True),
        sa.Column("shipment_load_session_id", sa.UUID(), nullable=True),
        sa.Column("toyota_skid_build_confirmation_number", sa.String(100), nullable=True),
        sa.Column("toyota_skid_build_status", sa.String(20), nullable=True),
        sa.Column("toyota_skid_build_error_message", sa.Text(), nullable=True),
        sa.Column("toyota_skid_build_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("toyota_shipment_confirmation_number", sa.String(100), nullable=True),
        sa.Column("toyota_shipment_status", sa.String(20), nullable=True),
        sa.Column("toyota_shipment_submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["upload_id"], ["order_uploads.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["shipment_load_session_id"], ["shipment_load_sessions.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("real_order_number", "dock_code", name="uq_orders_real_order_number_dock_code"),
        sa.Index("ix_orders_real_order_number", "real_order_number"),
        sa.Index("ix_orders_upload_id", "upload_id"),
        sa.Index("ix_orders_planned_route", "planned_route"),
        sa.Index("ix_orders_shipment_load_session_id", "shipment_load_session_id"),
    )

    # Planned items
    op.create_table(
        "planned_items",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("order_id", sa.UUID(), nullable=False),
        sa.Column("part_number", sa.String(50), nullable=False),
        sa.Column("qpc", sa.Integer(), nullable=False),
        sa.Column("kanban_number", sa.String(20), nullable=True),
        sa.Column("total_box_planned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("manifest_no", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("short_over", sa.Integer(), nullable=True),
        sa.Column("pieces", sa.Integer(), nullable=True),
        sa.Column("palletization_code", sa.String(10), nullable=True),
        sa.Column("external_order_id", sa.BigInteger(), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.Index("ix_planned_items_order_id", "order_id"),
    )

    # Skid build sessions
    op.create_table(
        "skid_build_sessions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("order_id", sa.UUID(), nullable=True),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("warehouse_id", sa.UUID(), nullable=True),
        sa.Column("supplier_code", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("current_screen", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirmation_number", sa.String(100), nullable=True),
        sa.Column("toyota_confirmation_number", sa.String(100), nullable=True),
        sa.Column("internal_reference_number", sa.String(100), nullable=True),
        sa.Column("toyota_submission_status", sa.String(20), nullable=True),
        sa.Column("toyota_error_message", sa.Text(), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.Index("ix_skid_build_sessions_order_id", "order_id"),
    )

    # Skid scans
    op.create_table(
        "skid_scans",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("planned_item_id", sa.UUID(), nullable=False),
        sa.Column("skid_number", sa.String(3), nullable=False),
        sa.Column("skid_side", sa.String(1), nullable=True),
        sa.Column("raw_skid_id", sa.String(10), nullable=True),
        sa.Column("box_number", sa.Integer(), nullable=False),
        sa.Column("line_side_address", sa.String(50), nullable=True),
        sa.Column("internal_kanban", sa.String(100), nullable=True),
        sa.Column("internal_kanban_serial", sa.String(50), nullable=True),
        sa.Column("palletization_code", sa.String(10), nullable=True),
        sa.Column("is_skid_cut", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("shipment_load_session_id", sa.UUID(), nullable=True),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scanned_by", sa.UUID(), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["planned_item_id"], ["planned_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shipment_load_session_id"], ["shipment_load_sessions.id"], ondelete="SET NULL"),
        sa.Index("ix_skid_scans_planned_item_id", "planned_item_id"),
        sa.Index("ix_skid_scans_internal_kanban_serial", "internal_kanban_serial"),
        sa.Index("ix_skid_scans_shipment_load_session_id", "shipment_load_session_id"),
    )

    # Skid build exceptions
    op.create_table(
        "skid_build_exceptions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("order_id", sa.UUID(), nullable=False),
        sa.Column("session_id", sa.UUID(), nullable=True),
        sa.Column("skid_number", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("exception_code", sa.String(10), nullable=False),
        sa.Column("comments", sa.String(100), nullable=False, server_default=""),
        sa.Column("created_by_user_id", sa.UUID(), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["session_id"], ["skid_build_sessions.id"], ondelete="SET NULL"),
        sa.Index("ix_skid_build_exceptions_order_id", "order_id"),
        sa.Index("ix_skid_build_exceptions_session_id", "session_id"),
    )

    # Shipment load exceptions
    op.create_table(
        "shipment_load_exceptions",
        sa.Column("id", sa.UUID(), primary_key=True, server_default=UUID_DEFAULT),
        sa.Column("session_id", sa.UUID(), nullable=False),
        sa.Column("exception_type", sa.String(50), nullable=False),
        sa.Column("comments", sa.String(500), nullable=True),
        sa.Column("related_skid_id", sa.String(50), nullable=True),
        sa.Column("created_by_user", sa.UUID(), nullable=True),
        *_timestamps_and_audit(),
        sa.ForeignKeyConstraint(["session_id"], ["shipment_load_sessions.id"], ondelete="CASCADE"),
        sa.Index("ix_shipment_load_exceptions_session_id", "session_id"),
    )


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_table("shipment_load_exceptions")
    op.drop_table("skid_build_exceptions")
    op.drop_table("skid_scans")
    op.drop_table("skid_build_sessions")
    op.drop_table("planned_items")
    op.drop_table("orders")
    op.drop_table("shipment_load_sessions")
    op.drop_table("order_uploads")
