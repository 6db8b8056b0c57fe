"""Initial schema: users, reports, rewards, karma, ledger, notifications.

Creates every table the WasteWise service reads and writes, matching
wastewise.db.models.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(255) UNIQUE NOT NULL,
            name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Reports ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS reports (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            location TEXT NOT NULL,
            waste_type VARCHAR(255) NOT NULL,
            amount VARCHAR(255) NOT NULL,
            image_url TEXT,
            inference_result JSONB,
            status VARCHAR(255) NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            collector_id INTEGER REFERENCES users(id),
            submission_key VARCHAR(128) UNIQUE
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_reports_created_at ON reports(created_at)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_reports_status ON reports(status)")

    # --- Collected waste ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS collected_waste (
            id SERIAL PRIMARY KEY,
            report_id INTEGER UNIQUE NOT NULL REFERENCES reports(id),
            collector_id INTEGER NOT NULL REFERENCES users(id),
            collection_date TIMESTAMPTZ NOT NULL,
            status VARCHAR(255) NOT NULL DEFAULT 'collected',
            verification_result JSONB
        )
    """)

    # --- Reward catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS rewards (
            id SERIAL PRIMARY KEY,
            reward_name VARCHAR(255) UNIQUE NOT NULL,
            reward_description TEXT,
            reward_claim_info TEXT NOT NULL,
            cost INTEGER NOT NULL,
            is_available BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_rewards_cost_positive CHECK (cost > 0)
        )
    """)

    # --- Karma cache ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS karma_scores (
            user_id INTEGER PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            karma_score INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Transactions (append-only ledger) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            type VARCHAR(20) NOT NULL,
            amount INTEGER NOT NULL,
            description TEXT NOT NULL,
            date TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            idempotency_key VARCHAR(256) UNIQUE,
            CONSTRAINT ck_transactions_amount_positive CHECK (amount > 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_transactions_user_date
        ON transactions(user_id, date)
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id),
            message TEXT NOT NULL,
            type VARCHAR(50) NOT NULL,
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user_unread
        ON notifications(user_id, is_read)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS notifications CASCADE")
    op.execute("DROP TABLE IF EXISTS transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS karma_scores CASCADE")
    op.execute("DROP TABLE IF EXISTS rewards CASCADE")
    op.execute("DROP TABLE IF EXISTS collected_waste CASCADE")
    op.execute("DROP TABLE IF EXISTS reports CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
