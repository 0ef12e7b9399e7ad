"""financial periods and locking functions

Revision ID: 0005_financial_periods
Revises: 0004_media_investment
Create Date: 2026-01-18

"""

from alembic import op

revision = "0005_financial_periods"
down_revision = "0004_media_investment"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS financial_periods (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      is_closed BOOLEAN NOT NULL DEFAULT false,
      closed_at TIMESTAMPTZ NULL,
      closed_by UUID NULL REFERENCES user_profiles(id) ON DELETE SET NULL,
      reopened_at TIMESTAMPTZ NULL,
      reopened_by UUID NULL REFERENCES user_profiles(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (fiscal_year, fiscal_month)
    );

    CREATE OR REPLACE FUNCTION is_period_closed(p_fiscal_year INTEGER, p_fiscal_month INTEGER)
    RETURNS BOOLEAN LANGUAGE sql STABLE AS $$
      SELECT COALESCE(
        (SELECT is_closed FROM financial_periods
          WHERE fiscal_year = p_fiscal_year AND fiscal_month = p_fiscal_month),
        false);
    $$;

    CREATE OR REPLACE FUNCTION close_financial_period(
      p_fiscal_year INTEGER, p_fiscal_month INTEGER, p_closed_by UUID
    ) RETURNS BOOLEAN LANGUAGE plpgsql AS $$
    BEGIN
      INSERT INTO financial_periods (fiscal_year, fiscal_month, is_closed, closed_at, closed_by)
      VALUES (p_fiscal_year, p_fiscal_month, true, now(), p_closed_by)
      ON CONFLICT (fiscal_year, fiscal_month)
      DO UPDATE SET is_closed = true, closed_at = now(), closed_by = p_closed_by;
      RETURN true;
    END;
    $$;

    CREATE OR REPLACE FUNCTION reopen_financial_period(
      p_fiscal_year INTEGER, p_fiscal_month INTEGER, p_reopened_by UUID
    ) RETURNS BOOLEAN LANGUAGE plpgsql AS $$
    BEGIN
      UPDATE financial_periods
         SET is_closed = false, reopened_at = now(), reopened_by = p_reopened_by
       WHERE fiscal_year = p_fiscal_year AND fiscal_month = p_fiscal_month AND is_closed;
      RETURN FOUND;
    END;
    $$;
    """
    )


def downgrade():
    op.execute(
        """
    DROP FUNCTION IF EXISTS reopen_financial_period(INTEGER, INTEGER, UUID);
    DROP FUNCTION IF EXISTS close_financial_period(INTEGER, INTEGER, UUID);
    DROP FUNCTION IF EXISTS is_period_closed(INTEGER, INTEGER);
    DROP TABLE IF EXISTS financial_periods;
    """
    )
