"""partners (commissions paid) and platforms (commissions earned)

Revision ID: 0008_commissions
Revises: 0007_payroll
Create Date: 2026-01-25

"""

from alembic import op

revision = "0008_commissions"
down_revision = "0007_payroll"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS partners (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL,
      email CITEXT NOT NULL,
      phone TEXT NULL,
      default_commission_percentage NUMERIC(5,2) NOT NULL DEFAULT 10,
      payment_method TEXT NOT NULL DEFAULT 'bank_transfer'
        CHECK (payment_method IN ('bank_transfer','paypal','other')),
      bank_details TEXT NULL,
      notes TEXT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS partner_clients (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      partner_id UUID NOT NULL REFERENCES partners(id) ON DELETE CASCADE,
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      commission_percentage NUMERIC(5,2) NOT NULL CHECK (commission_percentage BETWEEN 0 AND 100),
      effective_from DATE NOT NULL DEFAULT CURRENT_DATE,
      notes TEXT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS monthly_partner_commissions (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      partner_id UUID NOT NULL REFERENCES partners(id) ON DELETE CASCADE,
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      client_revenue NUMERIC(14,2) NOT NULL DEFAULT 0,
      commission_percentage NUMERIC(5,2) NOT NULL,
      commission_amount NUMERIC(14,2) NOT NULL,
      payment_status TEXT NOT NULL DEFAULT 'pending'
        CHECK (payment_status IN ('pending','paid','cancelled')),
      payment_date DATE NULL,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (partner_id, client_id, fiscal_year, fiscal_month)
    );

    CREATE TABLE IF NOT EXISTS commission_platforms (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL UNIQUE,
      platform_type TEXT NOT NULL,
      default_commission_percentage NUMERIC(5,2) NOT NULL DEFAULT 5,
      payment_frequency TEXT NOT NULL DEFAULT 'monthly'
        CHECK (payment_frequency IN ('monthly','quarterly','annual')),
      contact_email CITEXT NULL,
      notes TEXT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS monthly_platform_commissions (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      platform_id UUID NOT NULL REFERENCES commission_platforms(id) ON DELETE CASCADE,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      total_client_spending NUMERIC(14,2) NOT NULL DEFAULT 0,
      commission_percentage NUMERIC(5,2) NOT NULL,
      commission_earned NUMERIC(14,2) NOT NULL,
      payment_status TEXT NOT NULL DEFAULT 'pending'
        CHECK (payment_status IN ('pending','received','cancelled')),
      payment_date DATE NULL,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS monthly_platform_commissions;
    DROP TABLE IF EXISTS commission_platforms;
    DROP TABLE IF EXISTS monthly_partner_commissions;
    DROP TABLE IF EXISTS partner_clients;
    DROP TABLE IF EXISTS partners;
    """
    )
