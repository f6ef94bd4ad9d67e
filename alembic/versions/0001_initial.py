"""initial cash ledger schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("organizer_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PUBLISHED"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_events_organizer_id", "events", ["organizer_id"])

    op.create_table(
        "ticket_tiers",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("unit_price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sold_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("sold_count <= total_quantity", name="ck_ticket_tiers_sold_le_total"),
    )
    op.create_index("ix_ticket_tiers_event_id", "ticket_tiers", ["event_id"])

    op.create_table(
        "event_staff",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("organizer_id", sa.String(length=36), nullable=False),
        sa.Column("staff_user_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="STAFF"),
        sa.Column("assigned_by_staff_id", sa.String(length=36), nullable=True),
        sa.Column("accept_cash_in_person", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("commission_type", sa.String(length=12), nullable=False, server_default="NONE"),
        sa.Column("commission_value", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("tickets_sold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cash_collected_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("commission_earned_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_event_staff_event_id", "event_staff", ["event_id"])
    op.create_index("ix_event_staff_organizer_id", "event_staff", ["organizer_id"])
    op.create_index("ix_event_staff_staff_user_id", "event_staff", ["staff_user_id"])
    op.create_index("ix_event_staff_assigned_by_staff_id", "event_staff", ["assigned_by_staff_id"])

    op.create_table(
        "staff_tier_allocations",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("staff_id", sa.String(length=36), nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("tier_id", sa.String(length=36), nullable=False),
        sa.Column("allocated_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sold_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("remaining_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("staff_id", "tier_id", name="uq_staff_tier_allocation"),
        sa.CheckConstraint("remaining_quantity >= 0", name="ck_staff_tier_allocations_remaining_nonneg"),
        sa.CheckConstraint("remaining_quantity = allocated_quantity - sold_quantity", name="ck_staff_tier_allocations_balance"),
    )
    op.create_index("ix_staff_tier_allocations_staff_id", "staff_tier_allocations", ["staff_id"])
    op.create_index("ix_staff_tier_allocations_event_id", "staff_tier_allocations", ["event_id"])
    op.create_index("ix_staff_tier_allocations_tier_id", "staff_tier_allocations", ["tier_id"])

    op.create_table(
        "guest_contacts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_guest_contacts_phone", "guest_contacts", ["phone"])

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("order_number", sa.String(length=30), nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("guest_contact_id", sa.String(length=36), nullable=False),
        sa.Column("buyer_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("buyer_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("buyer_phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="PENDING_CASH_PAYMENT"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="CASH"),
        sa.Column("subtotal_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("platform_fee_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("processing_fee_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("hold_expires_at", sa.BigInteger(), nullable=True),
        sa.Column("approved_by_staff_id", sa.String(length=36), nullable=True),
        sa.Column("sold_by_staff_id", sa.String(length=36), nullable=True),
        sa.Column("staff_commission_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("code_issued_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_orders_order_number", "orders", ["order_number"], unique=True)
    op.create_index("ix_orders_event_id", "orders", ["event_id"])
    op.create_index("ix_orders_guest_contact_id", "orders", ["guest_contact_id"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_hold_expires_at", "orders", ["hold_expires_at"])
    op.create_index("ix_orders_sold_by_staff_id", "orders", ["sold_by_staff_id"])

    op.create_table(
        "tickets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("ticket_tier_id", sa.String(length=36), nullable=False),
        sa.Column("ticket_code", sa.String(length=40), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("attendee_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("attendee_email", sa.String(length=320), nullable=False, server_default=""),
        sa.Column("attendee_phone", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("activation_code", sa.String(length=4), nullable=True),
        sa.Column("sold_by_staff_id", sa.String(length=36), nullable=True),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tickets_event_id", "tickets", ["event_id"])
    op.create_index("ix_tickets_order_id", "tickets", ["order_id"])
    op.create_index("ix_tickets_ticket_tier_id", "tickets", ["ticket_tier_id"])
    op.create_index("ix_tickets_ticket_code", "tickets", ["ticket_code"], unique=True)

    op.create_table(
        "staff_sales",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("event_id", sa.String(length=36), nullable=False),
        sa.Column("staff_id", sa.String(length=36), nullable=False),
        sa.Column("staff_user_id", sa.String(length=36), nullable=True),
        sa.Column("ticket_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("commission_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="CASH"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_staff_sales_order_id", "staff_sales", ["order_id"])
    op.create_index("ix_staff_sales_event_id", "staff_sales", ["event_id"])
    op.create_index("ix_staff_sales_staff_id", "staff_sales", ["staff_id"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("related_order_number", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])
    op.create_index("ix_email_logs_related_order_number", "email_logs", ["related_order_number"])
    op.create_index("ix_email_logs_status", "email_logs", ["status"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    for table in (
        "audit_logs",
        "email_logs",
        "staff_sales",
        "tickets",
        "orders",
        "guest_contacts",
        "staff_tier_allocations",
        "event_staff",
        "ticket_tiers",
        "events",
        "users",
    ):
        op.drop_table(table)
