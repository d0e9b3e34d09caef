"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ACTIVE_WHERE = sa.text("escrow_status IN ('held_in_escrow', 'under_review')")


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)

    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"], unique=True)
    op.create_index("ix_user_roles_role", "user_roles", ["role"])

    op.create_table(
        "verified_plots",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("plot_number", sa.String(length=60), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("owner_name", sa.String(length=200), nullable=False),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_verified_plots_plot_number", "verified_plots", ["plot_number"], unique=True)

    op.create_table(
        "hostels",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("landlord_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("distance_from_gate", sa.Float(), nullable=True),
        sa.Column("plot_number", sa.String(length=60), nullable=False),
        sa.Column("rent_per_month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_rooms", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_hostels_landlord_id", "hostels", ["landlord_id"])
    op.create_index("ix_hostels_plot_number", "hostels", ["plot_number"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("hostel_id", sa.String(length=36), sa.ForeignKey("hostels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_number", sa.String(length=30), nullable=False),
        sa.Column("price_per_month", sa.Integer(), nullable=False),
        sa.Column("deposit_amount", sa.Integer(), nullable=True),
        sa.Column("is_vacant", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_rooms_hostel_id", "rooms", ["hostel_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("hostel_id", sa.String(length=36), sa.ForeignKey("hostels.id"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column("deposit_amount", sa.Integer(), nullable=False),
        sa.Column("platform_fee", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("payment_amount", sa.Integer(), nullable=False),
        sa.Column("total_paid", sa.Integer(), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="completed"),
        sa.Column("escrow_status", sa.String(length=30), nullable=False, server_default="held_in_escrow"),
        sa.Column("mpesa_transaction_id", sa.String(length=64), nullable=True),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=500), nullable=True),
        sa.Column("dispute_reason", sa.Text(), nullable=True),
        sa.Column("admin_resolution", sa.Text(), nullable=True),
    )
    op.create_index("ix_bookings_student_id", "bookings", ["student_id"])
    op.create_index("ix_bookings_hostel_id", "bookings", ["hostel_id"])
    op.create_index("ix_bookings_room_id", "bookings", ["room_id"])
    op.create_index("ix_bookings_escrow_status", "bookings", ["escrow_status"])
    # at most one held / under-review booking per room
    op.create_index(
        "uq_bookings_active_room", "bookings", ["room_id"], unique=True,
        postgresql_where=ACTIVE_WHERE, sqlite_where=ACTIVE_WHERE,
    )

    op.create_table(
        "receipts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=False),
        sa.Column("student_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("receipt_number", sa.String(length=40), nullable=False),
        sa.Column("deposit_amount", sa.Integer(), nullable=False),
        sa.Column("platform_fee", sa.Integer(), nullable=False),
        sa.Column("total_paid", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="mpesa"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="deposit_held"),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_receipts_booking_id", "receipts", ["booking_id"], unique=True)
    op.create_index("ix_receipts_student_id", "receipts", ["student_id"])
    op.create_index("ix_receipts_receipt_number", "receipts", ["receipt_number"], unique=True)

    op.create_table(
        "wallets",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("landlord_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_withdrawn", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_wallets_landlord_id", "wallets", ["landlord_id"], unique=True)

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("wallet_id", sa.String(length=36), sa.ForeignKey("wallets.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id"), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_wallet_transactions_wallet_id", "wallet_transactions", ["wallet_id"])
    op.create_index("ix_wallet_transactions_created_at", "wallet_transactions", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("related_booking_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])


def downgrade() -> None:
    op.drop_table("email_logs")
    op.drop_table("audit_logs")
    op.drop_table("wallet_transactions")
    op.drop_table("wallets")
    op.drop_table("receipts")
    op.drop_index("uq_bookings_active_room", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("rooms")
    op.drop_table("hostels")
    op.drop_table("verified_plots")
    op.drop_table("user_roles")
    op.drop_table("profiles")
