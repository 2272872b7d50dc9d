"""Baseline: users, settings, intake forms and clinical records.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            email VARCHAR(320) UNIQUE,
            first_name VARCHAR(128),
            last_name VARCHAR(128),
            date_of_birth VARCHAR(32),
            phone_number VARCHAR(32),
            profile_image_url TEXT,
            role VARCHAR(16) NOT NULL DEFAULT 'patient',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_settings (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            notifications_enabled BOOLEAN NOT NULL DEFAULT true,
            email_notifications BOOLEAN NOT NULL DEFAULT true,
            reminder_frequency VARCHAR(16) NOT NULL DEFAULT 'daily',
            theme VARCHAR(16) NOT NULL DEFAULT 'light',
            language VARCHAR(8) NOT NULL DEFAULT 'en',
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Intake forms ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS intake_forms (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            form_type VARCHAR(64) NOT NULL,
            title VARCHAR(256) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            form_data JSONB NOT NULL DEFAULT '{}',
            due_date TIMESTAMPTZ,
            completed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_intake_forms_user_status
        ON intake_forms(user_id, status)
    """)

    # --- Clinical records ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS health_metrics (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            metric_type VARCHAR(64) NOT NULL,
            value DOUBLE PRECISION NOT NULL,
            unit VARCHAR(32),
            notes TEXT,
            recorded_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_health_metrics_user_type_time
        ON health_metrics(user_id, metric_type, recorded_at DESC)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS lab_results (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            test_name VARCHAR(128) NOT NULL,
            result_value VARCHAR(64) NOT NULL,
            unit VARCHAR(32),
            reference_range VARCHAR(64),
            status VARCHAR(16) NOT NULL DEFAULT 'normal',
            test_date DATE NOT NULL
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS appointments (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            provider_name VARCHAR(128) NOT NULL,
            appointment_type VARCHAR(64) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'scheduled',
            scheduled_at TIMESTAMPTZ NOT NULL,
            location VARCHAR(256),
            notes TEXT
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_appointments_user_time
        ON appointments(user_id, scheduled_at)
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS emergency_contacts (
            id SERIAL PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(128) NOT NULL,
            relationship VARCHAR(64) NOT NULL,
            phone_number VARCHAR(32) NOT NULL,
            email VARCHAR(320),
            is_primary BOOLEAN NOT NULL DEFAULT false
        )
    """)


def downgrade() -> None:
    for table in (
        "emergency_contacts",
        "appointments",
        "lab_results",
        "health_metrics",
        "intake_forms",
        "user_settings",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
