"""create_notification_tables

Revision ID: pushboard_001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "pushboard_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id SERIAL PRIMARY KEY,
            title TEXT NOT NULL,
            body TEXT NOT NULL DEFAULT '',
            url TEXT,
            metadata JSONB NOT NULL DEFAULT '{}',
            "timestamp" TIMESTAMPTZ DEFAULT now(),
            delivered BOOLEAN NOT NULL DEFAULT false,
            clicked BOOLEAN NOT NULL DEFAULT false
        )
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_timestamp
        ON notifications ("timestamp")
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS subscriptions (
            id SERIAL PRIMARY KEY,
            subscription TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS subscriptions")
    op.execute("DROP INDEX IF EXISTS idx_notifications_timestamp")
    op.execute("DROP TABLE IF EXISTS notifications")
