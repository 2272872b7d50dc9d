"""Gamification tables: user_progress and achievements.

user_progress carries a version column for compare-and-swap updates.

Revision ID: 002_gamification_tables
Revises: 001_baseline
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_gamification_tables"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- User Progress ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_progress (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            total_forms_completed INTEGER NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            total_points INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            experience_points INTEGER NOT NULL DEFAULT 0,
            last_activity_date TIMESTAMPTZ,
            version INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CHECK (total_forms_completed >= 0),
            CHECK (experience_points >= 0),
            CHECK (level >= 1)
        )
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_type VARCHAR(32) NOT NULL DEFAULT 'milestone',
            badge_id VARCHAR(64) NOT NULL,
            title VARCHAR(128) NOT NULL,
            description TEXT,
            icon_name VARCHAR(64),
            color VARCHAR(16),
            progress INTEGER NOT NULL DEFAULT 0,
            target INTEGER NOT NULL,
            is_unlocked BOOLEAN NOT NULL DEFAULT false,
            earned_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT achievements_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_achievements_user_unlocked
        ON achievements(user_id, is_unlocked)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS user_progress CASCADE")
