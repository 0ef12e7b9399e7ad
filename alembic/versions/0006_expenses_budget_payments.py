"""expense categories, actual expenses, allocations, budget lines, payment schedule

Revision ID: 0006_expenses_budget
Revises: 0005_financial_periods
Create Date: 2026-01-20

"""

from alembic import op

revision = "0006_expenses_budget"
down_revision = "0005_financial_periods"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS expense_categories (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      code TEXT NOT NULL UNIQUE,
      name TEXT NOT NULL,
      parent_category_id UUID NULL REFERENCES expense_categories(id) ON DELETE SET NULL,
      is_general BOOLEAN NOT NULL DEFAULT false,
      display_order INTEGER NOT NULL DEFAULT 99,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS actual_expenses (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      expense_category_id UUID NOT NULL REFERENCES expense_categories(id) ON DELETE RESTRICT,
      amount NUMERIC(14,2) NOT NULL CHECK (amount >= 0),
      description TEXT NOT NULL,
      payment_date DATE NULL,
      vendor TEXT NULL,
      invoice_number TEXT NULL,
      reference_type TEXT NULL,
      reference_id UUID NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_actual_expenses_period ON actual_expenses(fiscal_year, fiscal_month);

    CREATE TABLE IF NOT EXISTS expense_allocations (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      expense_id UUID NOT NULL REFERENCES actual_expenses(id) ON DELETE CASCADE,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      allocation_percentage NUMERIC(5,2) NOT NULL,
      allocated_amount NUMERIC(14,2) NOT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (expense_id, department_id)
    );

    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'budget_line_type') THEN
        CREATE TYPE budget_line_type AS ENUM ('revenue','expense');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS budget_lines (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      fiscal_year INTEGER NOT NULL,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      line_type budget_line_type NOT NULL,
      service_id UUID NULL REFERENCES services(id) ON DELETE SET NULL,
      expense_category_id UUID NULL REFERENCES expense_categories(id) ON DELETE SET NULL,
      description TEXT NULL,
      jan NUMERIC(14,2) NOT NULL DEFAULT 0,
      feb NUMERIC(14,2) NOT NULL DEFAULT 0,
      mar NUMERIC(14,2) NOT NULL DEFAULT 0,
      apr NUMERIC(14,2) NOT NULL DEFAULT 0,
      may NUMERIC(14,2) NOT NULL DEFAULT 0,
      jun NUMERIC(14,2) NOT NULL DEFAULT 0,
      jul NUMERIC(14,2) NOT NULL DEFAULT 0,
      aug NUMERIC(14,2) NOT NULL DEFAULT 0,
      sep NUMERIC(14,2) NOT NULL DEFAULT 0,
      oct NUMERIC(14,2) NOT NULL DEFAULT 0,
      nov NUMERIC(14,2) NOT NULL DEFAULT 0,
      dec NUMERIC(14,2) NOT NULL DEFAULT 0,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_budget_lines_year ON budget_lines(fiscal_year, department_id);

    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'payment_status') THEN
        CREATE TYPE payment_status AS ENUM ('pending','paid','overdue','cancelled');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS payment_schedule (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      due_date DATE NOT NULL,
      amount NUMERIC(14,2) NOT NULL CHECK (amount >= 0),
      status payment_status NOT NULL DEFAULT 'pending',
      paid_at TIMESTAMPTZ NULL,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_payment_schedule_period ON payment_schedule(fiscal_year, fiscal_month);
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS payment_schedule;
    DROP TABLE IF EXISTS budget_lines;
    DROP TABLE IF EXISTS expense_allocations;
    DROP TABLE IF EXISTS actual_expenses;
    DROP TABLE IF EXISTS expense_categories;
    DROP TYPE IF EXISTS payment_status;
    DROP TYPE IF EXISTS budget_line_type;
    """
    )
