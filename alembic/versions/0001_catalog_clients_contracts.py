"""departments, verticals, billable services, clients, contracts

Revision ID: 0001_catalog_clients
Revises:
Create Date: 2026-01-12

"""

from alembic import op

revision = "0001_catalog_clients"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE EXTENSION IF NOT EXISTS "pgcrypto";
    CREATE EXTENSION IF NOT EXISTS "citext";

    CREATE TABLE IF NOT EXISTS departments (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      code TEXT NOT NULL UNIQUE,
      name TEXT NOT NULL UNIQUE,
      display_order INTEGER NOT NULL DEFAULT 99,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS verticals (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      code TEXT NOT NULL UNIQUE,
      name TEXT NOT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );

    CREATE TABLE IF NOT EXISTS services (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      code TEXT NOT NULL UNIQUE,
      name TEXT NOT NULL,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      display_order INTEGER NOT NULL DEFAULT 99,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_services_department ON services(department_id, display_order);

    CREATE TABLE IF NOT EXISTS clients (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      name TEXT NOT NULL,
      legal_name TEXT NULL,
      tax_id TEXT NULL,
      email CITEXT NULL,
      phone TEXT NULL,
      address TEXT NULL,
      vertical_id UUID NULL REFERENCES verticals(id) ON DELETE SET NULL,
      fee_config JSONB NULL,
      notes TEXT NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_clients_active_name ON clients(is_active, name);

    CREATE TABLE IF NOT EXISTS contracts (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      client_id UUID NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
      vertical_id UUID NULL REFERENCES verticals(id) ON DELETE SET NULL,
      contract_name TEXT NOT NULL,
      fee_percentage NUMERIC(5,2) NOT NULL DEFAULT 0 CHECK (fee_percentage BETWEEN 0 AND 100),
      minimum_fee NUMERIC(14,2) NOT NULL DEFAULT 0 CHECK (minimum_fee >= 0),
      effective_from DATE NOT NULL DEFAULT CURRENT_DATE,
      effective_to DATE NULL,
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS idx_contracts_client ON contracts(client_id, is_active);

    CREATE TABLE IF NOT EXISTS contract_department_splits (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      contract_id UUID NOT NULL REFERENCES contracts(id) ON DELETE CASCADE,
      department_id UUID NOT NULL REFERENCES departments(id) ON DELETE RESTRICT,
      split_percentage NUMERIC(5,2) NOT NULL CHECK (split_percentage BETWEEN 0 AND 100),
      UNIQUE (contract_id, department_id)
    );
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS contract_department_splits;
    DROP TABLE IF EXISTS contracts;
    DROP TABLE IF EXISTS clients;
    DROP TABLE IF EXISTS services;
    DROP TABLE IF EXISTS verticals;
    DROP TABLE IF EXISTS departments;
    """
    )
