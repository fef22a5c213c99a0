"""initial_syndicate_schema

Revision ID: 5c1e2a7b9d40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c1e2a7b9d40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))
        for name in names
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("full_name", sa.Text(), nullable=True),
        *_timestamps("created_at"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "horses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False, unique=True),
        sa.Column("trainer", sa.Text(), nullable=True),
        sa.Column("total_shares", sa.Integer(), nullable=False),
        sa.Column("share_price_pence", sa.Integer(), nullable=True),
        *_timestamps("created_at"),
        sa.CheckConstraint("total_shares >= 0", name="ck_horses_total_shares_non_negative"),
        sa.CheckConstraint(
            "share_price_pence IS NULL OR share_price_pence > 0",
            name="ck_horses_share_price_positive",
        ),
    )

    op.create_table(
        "ownerships",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("horse_id", sa.BigInteger(), nullable=False),
        sa.Column("shares", sa.Integer(), nullable=False),
        sa.Column("renewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps("created_at", "updated_at"),
        sa.CheckConstraint("shares > 0", name="ck_ownerships_shares_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
        sa.UniqueConstraint("user_id", "horse_id", name="uq_ownerships_user_horse"),
    )
    op.create_index("idx_ownerships_horse", "ownerships", ["horse_id"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("horse_id", sa.BigInteger(), nullable=False),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("unit_price_pence", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("clock_timestamp()"),
        ),
        sa.CheckConstraint("qty > 0", name="ck_purchases_qty_positive"),
        sa.CheckConstraint("unit_price_pence > 0", name="ck_purchases_unit_price_positive"),
        sa.CheckConstraint("source IN ('cart','detail_buy')", name="ck_purchases_source"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index("idx_purchases_horse_created", "purchases", ["horse_id", "created_at", "id"])
    op.create_index("idx_purchases_user_created", "purchases", ["user_id", "created_at"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("horse_id", sa.BigInteger(), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("quota", sa.Integer(), nullable=False),
        sa.Column("min_shares_required", sa.Integer(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("label", sa.Text(), nullable=True),
        sa.Column("reward", sa.Text(), nullable=True),
        *_timestamps("created_at"),
        sa.CheckConstraint("quota >= 0", name="ck_promotions_quota_non_negative"),
        sa.CheckConstraint("min_shares_required >= 0", name="ck_promotions_min_shares_non_negative"),
        sa.CheckConstraint(
            "start_at IS NULL OR end_at IS NULL OR start_at <= end_at",
            name="ck_promotions_window",
        ),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index("idx_promotions_horse", "promotions", ["horse_id"])

    op.create_table(
        "carts",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'open'")),
        *_timestamps("created_at"),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('open','closed')", name="ck_carts_status"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("idx_carts_user_created", "carts", ["user_id", "created_at"])
    op.create_index(
        "uq_carts_open_user",
        "carts",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("status = 'open'"),
    )

    op.create_table(
        "renew_cycles",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("horse_id", sa.BigInteger(), nullable=False),
        sa.Column("term_label", sa.Text(), nullable=False),
        sa.Column("opens_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closes_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price_per_share_pence", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'draft'")),
        *_timestamps("created_at"),
        sa.CheckConstraint("status IN ('draft','open','closed')", name="ck_renew_cycles_status"),
        sa.CheckConstraint(
            "price_per_share_pence IS NULL OR price_per_share_pence > 0",
            name="ck_renew_cycles_price_positive",
        ),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index("idx_renew_cycles_horse", "renew_cycles", ["horse_id"])

    op.create_table(
        "cart_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("cart_id", sa.BigInteger(), nullable=False),
        sa.Column("item_type", sa.String(16), nullable=False),
        sa.Column("horse_id", sa.BigInteger(), nullable=True),
        sa.Column("renew_cycle_id", sa.BigInteger(), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("unit_price_pence", sa.Integer(), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.CheckConstraint("item_type IN ('share','renewal')", name="ck_cart_items_item_type"),
        sa.CheckConstraint(
            "(item_type = 'share' AND horse_id IS NOT NULL AND renew_cycle_id IS NULL) OR "
            "(item_type = 'renewal' AND renew_cycle_id IS NOT NULL AND horse_id IS NULL)",
            name="ck_cart_items_target",
        ),
        sa.CheckConstraint("qty >= 1", name="ck_cart_items_qty_positive"),
        sa.CheckConstraint("unit_price_pence > 0", name="ck_cart_items_unit_price_positive"),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
        sa.ForeignKeyConstraint(["renew_cycle_id"], ["renew_cycles.id"]),
    )
    op.create_index("idx_cart_items_cart", "cart_items", ["cart_id"])
    op.create_index(
        "uq_cart_items_cart_share_horse",
        "cart_items",
        ["cart_id", "horse_id"],
        unique=True,
        postgresql_where=sa.text("item_type = 'share'"),
    )
    op.create_index(
        "uq_cart_items_cart_renewal_cycle",
        "cart_items",
        ["cart_id", "renew_cycle_id"],
        unique=True,
        postgresql_where=sa.text("item_type = 'renewal'"),
    )

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("amount_pence", sa.Integer(), nullable=False),
        sa.Column("memo", sa.Text(), nullable=True),
        sa.Column("cart_id", sa.BigInteger(), nullable=True),
        sa.Column("horse_id", sa.BigInteger(), nullable=True),
        *_timestamps("created_at"),
        sa.CheckConstraint("amount_pence > 0", name="ck_wallet_transactions_amount_positive"),
        sa.CheckConstraint("type IN ('credit','debit')", name="ck_wallet_transactions_type"),
        sa.CheckConstraint(
            "status IN ('pending','posted','void')",
            name="ck_wallet_transactions_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["cart_id"], ["carts.id"]),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index(
        "idx_wallet_transactions_user_status",
        "wallet_transactions",
        ["user_id", "status"],
    )
    op.create_index("idx_wallet_transactions_cart", "wallet_transactions", ["cart_id"])

    op.create_table(
        "renew_responses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("renew_cycle_id", sa.BigInteger(), nullable=False),
        sa.Column("shares", sa.Integer(), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.CheckConstraint("shares > 0", name="ck_renew_responses_shares_positive"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["renew_cycle_id"], ["renew_cycles.id"]),
        sa.UniqueConstraint("user_id", "renew_cycle_id", name="uq_renew_responses_user_cycle"),
    )

    op.create_table(
        "ballots",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("horse_id", sa.BigInteger(), nullable=True),
        sa.Column("ballot_type", sa.String(16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=True),
        sa.Column("cutoff_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_winners", sa.Integer(), nullable=False),
        sa.Column("racecourse_allocation", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'open'")),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps("created_at"),
        sa.CheckConstraint("ballot_type IN ('badge','stable')", name="ck_ballots_type"),
        sa.CheckConstraint("status IN ('open','closed','drawn')", name="ck_ballots_status"),
        sa.CheckConstraint("max_winners >= 1", name="ck_ballots_max_winners_positive"),
        sa.CheckConstraint(
            "racecourse_allocation IS NULL OR racecourse_allocation >= 0",
            name="ck_ballots_racecourse_allocation_non_negative",
        ),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index("idx_ballots_horse", "ballots", ["horse_id"])
    op.create_index("idx_ballots_status_cutoff", "ballots", ["status", "cutoff_at"])

    op.create_table(
        "ballot_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("ballot_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(["ballot_id"], ["ballots.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("ballot_id", "user_id", name="uq_ballot_entries_ballot_user"),
    )

    op.create_table(
        "ballot_results",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("ballot_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("outcome", sa.String(16), nullable=False),
        *_timestamps("created_at"),
        sa.CheckConstraint("outcome IN ('winner','non_winner')", name="ck_ballot_results_outcome"),
        sa.ForeignKeyConstraint(["ballot_id"], ["ballots.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("ballot_id", "user_id", name="uq_ballot_results_ballot_user"),
    )
    op.create_index("idx_ballot_results_user", "ballot_results", ["user_id"])

    op.create_table(
        "votes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("horse_id", sa.BigInteger(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cutoff_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default=sa.text("'open'")),
        *_timestamps("created_at"),
        sa.CheckConstraint("status IN ('open','closed')", name="ck_votes_status"),
        sa.ForeignKeyConstraint(["horse_id"], ["horses.id"]),
    )
    op.create_index("idx_votes_horse", "votes", ["horse_id"])

    op.create_table(
        "vote_options",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("vote_id", sa.BigInteger(), nullable=False),
        sa.Column("label", sa.Text(), nullable=False),
        sa.Column("position", sa.SmallInteger(), nullable=False),
        sa.ForeignKeyConstraint(["vote_id"], ["votes.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_vote_options_vote", "vote_options", ["vote_id", "position"])

    op.create_table(
        "vote_responses",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("vote_id", sa.BigInteger(), nullable=False),
        sa.Column("option_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(["vote_id"], ["votes.id"]),
        sa.ForeignKeyConstraint(["option_id"], ["vote_options.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.UniqueConstraint("vote_id", "user_id", name="uq_vote_responses_vote_user"),
    )
    op.create_index("idx_vote_responses_option", "vote_responses", ["option_id"])

    op.create_table(
        "interest_signups",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("source", sa.String(200), nullable=False, server_default=sa.text("'home'")),
        *_timestamps("created_at"),
    )

    op.create_table(
        "leads",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("source", sa.String(200), nullable=False, server_default=sa.text("'site'")),
        *_timestamps("created_at", "updated_at"),
    )


def downgrade() -> None:
    op.drop_table("leads")
    op.drop_table("interest_signups")
    op.drop_index("idx_vote_responses_option", table_name="vote_responses")
    op.drop_table("vote_responses")
    op.drop_index("idx_vote_options_vote", table_name="vote_options")
    op.drop_table("vote_options")
    op.drop_index("idx_votes_horse", table_name="votes")
    op.drop_table("votes")
    op.drop_index("idx_ballot_results_user", table_name="ballot_results")
    op.drop_table("ballot_results")
    op.drop_table("ballot_entries")
    op.drop_index("idx_ballots_status_cutoff", table_name="ballots")
    op.drop_index("idx_ballots_horse", table_name="ballots")
    op.drop_table("ballots")
    op.drop_table("renew_responses")
    op.drop_index("idx_wallet_transactions_cart", table_name="wallet_transactions")
    op.drop_index("idx_wallet_transactions_user_status", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")
    op.drop_index("uq_cart_items_cart_renewal_cycle", table_name="cart_items")
    op.drop_index("uq_cart_items_cart_share_horse", table_name="cart_items")
    op.drop_index("idx_cart_items_cart", table_name="cart_items")
    op.drop_table("cart_items")
    op.drop_index("idx_renew_cycles_horse", table_name="renew_cycles")
    op.drop_table("renew_cycles")
    op.drop_index("uq_carts_open_user", table_name="carts")
    op.drop_index("idx_carts_user_created", table_name="carts")
    op.drop_table("carts")
    op.drop_index("idx_promotions_horse", table_name="promotions")
    op.drop_table("promotions")
    op.drop_index("idx_purchases_user_created", table_name="purchases")
    op.drop_index("idx_purchases_horse_created", table_name="purchases")
    op.drop_table("purchases")
    op.drop_index("idx_ownerships_horse", table_name="ownerships")
    op.drop_table("ownerships")
    op.drop_table("horses")
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")
