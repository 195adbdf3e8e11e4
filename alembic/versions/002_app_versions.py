"""App version registry for client update checks.

Revision ID: 002_app_versions
Revises: 001_initial_schema
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_app_versions"
down_revision: str | None = "001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS app_versions (
            id VARCHAR(36) PRIMARY KEY,
            version VARCHAR(32) NOT NULL UNIQUE,
            min_version VARCHAR(32),
            is_forced BOOLEAN NOT NULL DEFAULT false,
            description TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_app_versions_created_at ON app_versions(created_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS app_versions CASCADE")
