"""monthly billing records and service lines

Revision ID: 0003_monthly_billing
Revises: 0002_user_profiles
Create Date: 2026-01-14

"""

from alembic import op

revision = "0003_monthly_billing"
down_revision = "0002_user_profiles"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS monthly_billing (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      fiscal_year INTEGER NOT NULL CHECK (fiscal_year >= 2020),
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      total_ad_investment NUMERIC(14,2) NOT NULL DEFAULT 0,
      total_actual_investment NUMERIC(14,2) NOT NULL DEFAULT 0,
      platform_count INTEGER NOT NULL DEFAULT 1,
      applied_fee_percentage NUMERIC(5,2) NOT NULL DEFAULT 0,
      platform_costs NUMERIC(14,2) NOT NULL DEFAULT 0,
      fee_paid NUMERIC(14,2) NOT NULL DEFAULT 0,
      is_manual_override BOOLEAN NOT NULL DEFAULT false,
      immedia_total NUMERIC(14,2) NOT NULL DEFAULT 0,
      imcontent_total NUMERIC(14,2) NOT NULL DEFAULT 0,
      immoralia_total NUMERIC(14,2) NOT NULL DEFAULT 0,
      immoral_general_total NUMERIC(14,2) NOT NULL DEFAULT 0,
      grand_total NUMERIC(14,2) NOT NULL DEFAULT 0,
      notes TEXT NULL,
      is_finalized BOOLEAN NOT NULL DEFAULT false,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (client_id, fiscal_year, fiscal_month)
    );
    CREATE INDEX IF NOT EXISTS idx_monthly_billing_period ON monthly_billing(fiscal_year, fiscal_month);

    CREATE TABLE IF NOT EXISTS billing_details (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      monthly_billing_id UUID NOT NULL REFERENCES monthly_billing(id) ON DELETE CASCADE,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      service_id UUID NULL REFERENCES services(id) ON DELETE SET NULL,
      service_name TEXT NOT NULL,
      amount NUMERIC(14,2) NOT NULL DEFAULT 0 CHECK (amount >= 0),
      is_fee_paid BOOLEAN NOT NULL DEFAULT false,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (monthly_billing_id, service_id)
    );
    CREATE INDEX IF NOT EXISTS idx_billing_details_parent ON billing_details(monthly_billing_id);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS billing_details;
    DROP TABLE IF EXISTS monthly_billing;
    """
    )
