"""ledger entries and create_ledger_entry()

Revision ID: 0009_ledger
Revises: 0008_commissions
Create Date: 2026-01-28

"""

from alembic import op

revision = "0009_ledger"
down_revision = "0008_commissions"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'ledger_entry_type') THEN
        CREATE TYPE ledger_entry_type AS ENUM ('revenue','payroll','expense','commission');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS ledger_entries (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      entry_type ledger_entry_type NOT NULL,
      transaction_id UUID NOT NULL,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      vertical_id UUID NULL REFERENCES verticals(id) ON DELETE SET NULL,
      amount NUMERIC(14,2) NOT NULL,
      entry_date DATE NOT NULL,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL,
      description TEXT NOT NULL,
      reference_type TEXT NULL,
      reference_id UUID NULL,
      metadata JSONB NULL,
      is_adjustment BOOLEAN NOT NULL DEFAULT false,
      adjustment_of UUID NULL REFERENCES ledger_entries(id) ON DELETE SET NULL,
      created_by UUID NULL REFERENCES user_profiles(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_ledger_transaction ON ledger_entries(transaction_id);
    CREATE INDEX IF NOT EXISTS idx_ledger_period ON ledger_entries(fiscal_year, fiscal_month, department_id);

    CREATE OR REPLACE FUNCTION create_ledger_entry(
      p_entry_type TEXT,
      p_transaction_id UUID,
      p_department_id UUID,
      p_vertical_id UUID,
      p_amount NUMERIC,
      p_entry_date DATE,
      p_description TEXT,
      p_reference_type TEXT,
      p_reference_id UUID,
      p_metadata JSONB,
      p_is_adjustment BOOLEAN,
      p_adjustment_of UUID,
      p_created_by UUID
    ) RETURNS UUID LANGUAGE plpgsql AS $$
    DECLARE
      v_id UUID;
    BEGIN
      IF p_amount IS NULL OR p_amount = 0 THEN
        RAISE EXCEPTION 'ledger amount must be non-zero';
      END IF;
      IF is_period_closed(EXTRACT(YEAR FROM p_entry_date)::int, EXTRACT(MONTH FROM p_entry_date)::int)
         AND NOT p_is_adjustment THEN
        RAISE EXCEPTION 'period % is closed', to_char(p_entry_date, 'YYYY-MM');
      END IF;
      IF p_is_adjustment AND p_adjustment_of IS NULL THEN
        RAISE EXCEPTION 'adjustments must reference the adjusted entry';
      END IF;

      INSERT INTO ledger_entries (
        entry_type, transaction_id, department_id, vertical_id, amount, entry_date,
        fiscal_year, fiscal_month, description, reference_type, reference_id, metadata,
        is_adjustment, adjustment_of, created_by
      ) VALUES (
        p_entry_type::ledger_entry_type, p_transaction_id, p_department_id, p_vertical_id,
        p_amount, p_entry_date,
        EXTRACT(YEAR FROM p_entry_date)::int, EXTRACT(MONTH FROM p_entry_date)::int,
        p_description, p_reference_type, p_reference_id, p_metadata,
        COALESCE(p_is_adjustment, false), p_adjustment_of, p_created_by
      ) RETURNING id INTO v_id;
      RETURN v_id;
    END;
    $$;
    """
    )


def downgrade():
    op.execute(
        """
    DROP FUNCTION IF EXISTS create_ledger_entry(TEXT, UUID, UUID, UUID, NUMERIC, DATE, TEXT, TEXT, UUID, JSONB, BOOLEAN, UUID, UUID);
    DROP TABLE IF EXISTS ledger_entries;
    DROP TYPE IF EXISTS ledger_entry_type;
    """
    )
