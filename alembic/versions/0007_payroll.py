"""employees, salary history, monthly payroll and department splits

Revision ID: 0007_payroll
Revises: 0006_expenses_budget
Create Date: 2026-01-22

"""

from alembic import op

revision = "0007_payroll"
down_revision = "0006_expenses_budget"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS employees (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      employee_code TEXT NOT NULL UNIQUE,
      first_name TEXT NOT NULL,
      last_name TEXT NOT NULL,
      email CITEXT NOT NULL UNIQUE,
      hire_date DATE NOT NULL,
      current_salary NUMERIC(14,2) NOT NULL CHECK (current_salary >= 0),
      currency TEXT NOT NULL DEFAULT 'EUR',
      position TEXT NOT NULL,
      primary_department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS employee_department_allocations (
      employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      allocation_percentage NUMERIC(5,2) NOT NULL CHECK (allocation_percentage BETWEEN 0 AND 100),
      PRIMARY KEY (employee_id, department_id)
    );

    CREATE TABLE IF NOT EXISTS salary_history (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
      old_salary NUMERIC(14,2) NULL,
      new_salary NUMERIC(14,2) NOT NULL,
      effective_from DATE NOT NULL,
      effective_to DATE NULL,
      change_reason TEXT NULL,
      approved_by UUID NULL REFERENCES user_profiles(id) ON DELETE SET NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_salary_history_employee ON salary_history(employee_id, effective_from);

    CREATE TABLE IF NOT EXISTS monthly_payroll (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
      fiscal_year INTEGER NOT NULL,
      fiscal_month INTEGER NOT NULL CHECK (fiscal_month BETWEEN 1 AND 12),
      gross_salary NUMERIC(14,2) NOT NULL CHECK (gross_salary >= 0),
      social_security_company NUMERIC(14,2) NOT NULL DEFAULT 0,
      other_benefits NUMERIC(14,2) NOT NULL DEFAULT 0,
      total_company_cost NUMERIC(14,2) NOT NULL CHECK (total_company_cost >= 0),
      payment_date DATE NOT NULL,
      notes TEXT NULL,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      UNIQUE (employee_id, fiscal_year, fiscal_month)
    );
    CREATE INDEX IF NOT EXISTS idx_monthly_payroll_period ON monthly_payroll(fiscal_year, fiscal_month);

    CREATE TABLE IF NOT EXISTS payroll_department_splits (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      payroll_id UUID NOT NULL REFERENCES monthly_payroll(id) ON DELETE CASCADE,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      split_percentage NUMERIC(5,2) NOT NULL,
      split_amount NUMERIC(14,2) NOT NULL,
      UNIQUE (payroll_id, department_id)
    );
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS payroll_department_splits;
    DROP TABLE IF EXISTS monthly_payroll;
    DROP TABLE IF EXISTS salary_history;
    DROP TABLE IF EXISTS employee_department_allocations;
    DROP TABLE IF EXISTS employees;
    """
    )
