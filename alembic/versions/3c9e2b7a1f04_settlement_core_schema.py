"""settlement_core_schema

Revision ID: 3c9e2b7a1f04
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3c9e2b7a1f04"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "artists",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("subscription_tier", sa.String(16), nullable=False, server_default=sa.text("'starter'")),
        sa.Column("subscription_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payout_account_ref", sa.String(64), nullable=True),
        sa.Column("connect_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("subscription_tier IN ('starter','pro','elite')", name="ck_artists_subscription_tier"),
        sa.UniqueConstraint("payout_account_ref", name="uq_artists_payout_account_ref"),
    )

    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ticket_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("happy_hour_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("current_attendees", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'scheduled'")),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("status IN ('scheduled','live','ended','cancelled')", name="ck_events_status"),
        sa.CheckConstraint("ticket_price > 0", name="ck_events_ticket_price_positive"),
        sa.CheckConstraint(
            "happy_hour_price IS NULL OR happy_hour_price > 0",
            name="ck_events_happy_hour_price_positive",
        ),
        sa.CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_events_capacity_positive"),
        sa.CheckConstraint("current_attendees >= 0", name="ck_events_attendees_non_negative"),
        sa.CheckConstraint(
            "capacity IS NULL OR current_attendees <= capacity",
            name="ck_events_attendees_within_capacity",
        ),
        sa.CheckConstraint("status <> 'ended' OR ended_at IS NOT NULL", name="ck_events_ended_at_required"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"]),
    )
    op.create_index("idx_events_artist_scheduled", "events", ["artist_id", "scheduled_at"])
    op.create_index(
        "idx_events_ended_at",
        "events",
        ["ended_at"],
        postgresql_where=sa.text("status = 'ended'"),
    )

    op.create_table(
        "affiliates",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("referral_code", sa.String(16), nullable=False),
        sa.Column("parent_affiliate_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("grandparent_affiliate_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("level", sa.SmallInteger(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("level BETWEEN 1 AND 3", name="ck_affiliates_level_range"),
        sa.CheckConstraint(
            "grandparent_affiliate_id IS NULL OR parent_affiliate_id IS NOT NULL",
            name="ck_affiliates_grandparent_requires_parent",
        ),
        sa.CheckConstraint("parent_affiliate_id <> id", name="ck_affiliates_no_self_parent"),
        sa.ForeignKeyConstraint(["parent_affiliate_id"], ["affiliates.id"]),
        sa.ForeignKeyConstraint(["grandparent_affiliate_id"], ["affiliates.id"]),
        sa.UniqueConstraint("user_id", name="uq_affiliates_user_id"),
        sa.UniqueConstraint("referral_code", name="uq_affiliates_referral_code"),
    )
    op.create_index("idx_affiliates_parent", "affiliates", ["parent_affiliate_id"])
    op.create_index("idx_affiliates_grandparent", "affiliates", ["grandparent_affiliate_id"])

    op.create_table(
        "tickets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("purchase_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("is_happy_hour", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("payment_intent_ref", sa.String(128), nullable=False),
        sa.Column("affiliate_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('pending','confirmed','failed','refunded','cancelled')",
            name="ck_tickets_status",
        ),
        sa.CheckConstraint("purchase_price > 0", name="ck_tickets_purchase_price_positive"),
        sa.CheckConstraint(
            "status <> 'confirmed' OR confirmed_at IS NOT NULL",
            name="ck_tickets_confirmed_at_required",
        ),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.ForeignKeyConstraint(["affiliate_id"], ["affiliates.id"]),
        sa.UniqueConstraint("payment_intent_ref", name="uq_tickets_payment_intent_ref"),
    )
    op.create_index("idx_tickets_event_status", "tickets", ["event_id", "status"])
    op.create_index("idx_tickets_user_created", "tickets", ["user_id", "created_at"])
    op.create_index(
        "uq_tickets_active_event_user",
        "tickets",
        ["event_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("status NOT IN ('failed','cancelled')"),
    )

    op.create_table(
        "payouts",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("external_transfer_ref", sa.String(128), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('processing','failed')", name="ck_payouts_status"),
        sa.CheckConstraint("amount > 0", name="ck_payouts_amount_positive"),
        sa.CheckConstraint("retry_count >= 0", name="ck_payouts_retry_count_non_negative"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.UniqueConstraint("artist_id", "event_id", name="uq_payouts_artist_event"),
        sa.UniqueConstraint("external_transfer_ref", name="uq_payouts_external_transfer_ref"),
    )
    op.create_index("idx_payouts_status_created", "payouts", ["status", "created_at"])

    op.create_table(
        "commissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("ticket_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("affiliate_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("commission_level", sa.SmallInteger(), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 4), nullable=False),
        sa.Column("commission_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'pending'")),
        sa.Column("payout_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("commission_level BETWEEN 1 AND 3", name="ck_commissions_level_range"),
        sa.CheckConstraint("commission_amount >= 0", name="ck_commissions_amount_non_negative"),
        sa.CheckConstraint("status IN ('pending','paid')", name="ck_commissions_status"),
        sa.CheckConstraint("status <> 'paid' OR paid_at IS NOT NULL", name="ck_commissions_paid_at_required"),
        sa.ForeignKeyConstraint(["ticket_id"], ["tickets.id"]),
        sa.ForeignKeyConstraint(["affiliate_id"], ["affiliates.id"]),
        sa.ForeignKeyConstraint(["payout_id"], ["payouts.id"]),
        sa.UniqueConstraint("ticket_id", "commission_level", name="uq_commissions_ticket_level"),
    )
    op.create_index("idx_commissions_affiliate_status", "commissions", ["affiliate_id", "status"])
    op.create_index(
        "idx_commissions_pending_ticket",
        "commissions",
        ["ticket_id"],
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "tips",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("artist_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("payment_intent_ref", sa.String(128), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("status IN ('pending','completed','failed','refunded')", name="ck_tips_status"),
        sa.CheckConstraint("amount >= 1 AND amount <= 500", name="ck_tips_amount_range"),
        sa.CheckConstraint("platform_fee >= 0 AND platform_fee < amount", name="ck_tips_platform_fee_range"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"]),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.UniqueConstraint("payment_intent_ref", name="uq_tips_payment_intent_ref"),
    )
    op.create_index("idx_tips_artist_created", "tips", ["artist_id", "created_at"])
    op.create_index("idx_tips_user_created", "tips", ["user_id", "created_at"])

    op.create_table(
        "processed_payment_events",
        sa.Column("external_event_id", sa.String(255), primary_key=True),
        sa.Column("event_type", sa.String(128), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_processed_payment_events_processed_at",
        "processed_payment_events",
        ["processed_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_processed_payment_events_processed_at", table_name="processed_payment_events")
    op.drop_table("processed_payment_events")

    op.drop_index("idx_tips_user_created", table_name="tips")
    op.drop_index("idx_tips_artist_created", table_name="tips")
    op.drop_table("tips")

    op.drop_index("idx_commissions_pending_ticket", table_name="commissions")
    op.drop_index("idx_commissions_affiliate_status", table_name="commissions")
    op.drop_table("commissions")

    op.drop_index("idx_payouts_status_created", table_name="payouts")
    op.drop_table("payouts")

    op.drop_index("uq_tickets_active_event_user", table_name="tickets")
    op.drop_index("idx_tickets_user_created", table_name="tickets")
    op.drop_index("idx_tickets_event_status", table_name="tickets")
    op.drop_table("tickets")

    op.drop_index("idx_affiliates_grandparent", table_name="affiliates")
    op.drop_index("idx_affiliates_parent", table_name="affiliates")
    op.drop_table("affiliates")

    op.drop_index("idx_events_ended_at", table_name="events")
    op.drop_index("idx_events_artist_scheduled", table_name="events")
    op.drop_table("events")

    op.drop_table("artists")
