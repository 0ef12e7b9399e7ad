"""ad platforms and per-platform client investment

Revision ID: 0004_media_investment
Revises: 0003_monthly_billing
Create Date: 2026-01-15

"""

from alembic import op

revision = "0004_media_investment"
down_revision = "0003_monthly_billing"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS ad_platforms (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      code TEXT NOT NULL UNIQUE,
      name TEXT NOT NULL,
      display_order INTEGER NOT NULL DEFAULT 99,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS client_ad_investment (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      platform_id UUID NOT NULL REFERENCES ad_platforms(id) ON DELETE RESTRICT,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      planned_amount NUMERIC(14,2) NOT NULL DEFAULT 0,
      actual_amount NUMERIC(14,2) NOT NULL DEFAULT 0 CHECK (actual_amount >= 0),
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (client_id, platform_id, fiscal_year, fiscal_month)
    );
    CREATE INDEX IF NOT EXISTS idx_ad_investment_period ON client_ad_investment(fiscal_year, fiscal_month);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS client_ad_investment;
    DROP TABLE IF EXISTS ad_platforms;
    """
    )
