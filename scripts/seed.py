#!/usr/bin/env python3
"""
Seed the catalog and a demo admin.

Usage: python scripts/seed.py [--force]
Requires: migrations applied (alembic upgrade head)
"""
import os
import sys

# Ensure agency_finance is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import bcrypt
from psycopg2.extras import Json

from agency_finance.utils.db import get_db_connection
from agency_finance.utils.fee_calculator import DEFAULT_FEE_CONFIG

DEPARTMENTS = [
    ("IMMED", "Immedia", 1),
    ("IMCONT", "Imcontent", 2),
    ("IMMOR", "Immoralia", 3),
    ("IMMORAL", "Immoral General", 4),
]
SERVICES = [
    ("PAID_MEDIA_STRATEGY", "Paid Media Strategy", "IMMED", 1),
    ("SEO", "SEO", "IMMED", 2),
    ("CONTENT", "Content Production", "IMCONT", 1),
    ("SOCIAL", "Social Media", "IMCONT", 2),
    ("AUTOMATION", "Automation", "IMMOR", 1),
    ("CONSULTING", "Consulting", "IMMORAL", 1),
]
PLATFORMS = [("META", "Meta Ads", 1), ("GOOGLE", "Google Ads", 2), ("TIKTOK", "TikTok Ads", 3)]
CATEGORIES = [
    ("RENT", "Office rent", True),
    ("SOFTWARE", "Software", True),
    ("FREELANCE", "Freelancers", False),
    ("TRAVEL", "Travel", False),
]
VERTICALS = [("ECOM", "E-commerce"), ("SAAS", "SaaS"), ("HEALTH", "Health")]

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123456"


def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def seed():
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("SELECT COUNT(*) FROM user_profiles WHERE email = %s", (ADMIN_EMAIL,))
        if cur.fetchone()[0] > 0:
            print(f"Already seeded ({ADMIN_EMAIL} exists). Use --force to re-seed.")
            return

        # 1. Admin user
        cur.execute(
            """
            INSERT INTO user_profiles (email, password_hash, full_name, role)
            VALUES (%s, %s, 'Demo Admin', 'admin')
            """,
            (ADMIN_EMAIL, _hash(ADMIN_PASSWORD)),
        )

        # 2. Catalog
        dept_ids = {}
        for code, name, order in DEPARTMENTS:
            cur.execute(
                """
                INSERT INTO departments (code, name, display_order) VALUES (%s, %s, %s)
                ON CONFLICT (code) DO UPDATE SET name = EXCLUDED.name
                RETURNING id
                """,
                (code, name, order),
            )
            dept_ids[code] = cur.fetchone()[0]
        for code, name, dept, order in SERVICES:
            cur.execute(
                """
                INSERT INTO services (code, name, department_id, display_order)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (code) DO NOTHING
                """,
                (code, name, dept_ids[dept], order),
            )
        for code, name, order in PLATFORMS:
            cur.execute(
                "INSERT INTO ad_platforms (code, name, display_order) VALUES (%s, %s, %s) ON CONFLICT (code) DO NOTHING",
                (code, name, order),
            )
        for code, name, is_general in CATEGORIES:
            cur.execute(
                "INSERT INTO expense_categories (code, name, is_general) VALUES (%s, %s, %s) ON CONFLICT (code) DO NOTHING",
                (code, name, is_general),
            )
        for code, name in VERTICALS:
            cur.execute(
                "INSERT INTO verticals (code, name) VALUES (%s, %s) ON CONFLICT (code) DO NOTHING",
                (code, name),
            )

        # 3. Demo client with a contract split across two departments
        cur.execute(
            "INSERT INTO clients (name, email, fee_config) VALUES ('Demo Client', 'client@example.com', %s) RETURNING id",
            (Json(DEFAULT_FEE_CONFIG),),
        )
        client_id = cur.fetchone()[0]
        cur.execute(
            """
            INSERT INTO contracts (client_id, contract_name, fee_percentage, minimum_fee)
            VALUES (%s, 'Demo retainer', 10, 500)
            RETURNING id
            """,
            (client_id,),
        )
        contract_id = cur.fetchone()[0]
        cur.execute(
            """
            INSERT INTO contract_department_splits (contract_id, department_id, split_percentage)
            VALUES (%s, %s, 60), (%s, %s, 40)
            """,
            (contract_id, dept_ids["IMMED"], contract_id, dept_ids["IMCONT"]),
        )

        conn.commit()
        print("Seeded successfully.")
        print(f"  Admin user: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")
        print(f"  Departments: {len(DEPARTMENTS)}, services: {len(SERVICES)}")
        print(f"  Demo client {client_id} with contract {contract_id}")


def force_seed():
    """Clear demo data and re-seed. Use with caution."""
    with get_db_connection() as conn, conn.cursor() as cur:
        cur.execute("DELETE FROM clients WHERE email = 'client@example.com'")
        cur.execute("DELETE FROM user_profiles WHERE email = %s", (ADMIN_EMAIL,))
        conn.commit()
    print("Cleared demo data. Seeding...")
    seed()


if __name__ == "__main__":
    if "--force" in sys.argv:
        force_seed()
    else:
        seed()
