"""001: create market_events table

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE market_events (
            id              BIGSERIAL       PRIMARY KEY,
            project_id      BIGINT          NOT NULL,
            event_type      VARCHAR(30)     NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_market_event_type CHECK (
                event_type IN (
                    'PRICE_UPDATED',
                    'VOLATILITY_ALERT',
                    'BUY_CREDIT',
                    'RETURN_CREDITS',
                    'PROJECT_VALIDATED',
                    'PENALTY'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_market_events_project_time ON market_events (project_id, created_at);")
    op.execute("CREATE INDEX idx_market_events_type ON market_events (event_type);")
    op.execute("COMMENT ON TABLE market_events IS 'Committed market notifications. Append-only.';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS market_events CASCADE;")
