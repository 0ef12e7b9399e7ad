"""user profiles with roles

Revision ID: 0002_user_profiles
Revises: 0001_catalog_clients
Create Date: 2026-01-12

"""

from alembic import op

revision = "0002_user_profiles"
down_revision = "0001_catalog_clients"
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    DO $$
    BEGIN
      IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'user_role') THEN
        CREATE TYPE user_role AS ENUM ('admin','manager','viewer');
      END IF;
    END$$;

    CREATE TABLE IF NOT EXISTS user_profiles (
      id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
      email CITEXT NOT NULL UNIQUE,
      password_hash TEXT NOT NULL,
      full_name TEXT NULL,
      role user_role NOT NULL DEFAULT 'viewer',
      is_active BOOLEAN NOT NULL DEFAULT true,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """
    )


def downgrade():
    op.execute(
        """
    DROP TABLE IF EXISTS user_profiles;
    DO $$
    BEGIN
      IF EXISTS (SELECT 1 FROM pg_type WHERE typname = 'user_role') THEN
        DROP TYPE user_role;
      END IF;
    END$$;
    """
    )
