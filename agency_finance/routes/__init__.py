from .auth_routes import auth_bp
from .user_routes import user
from .core_routes import core
from .admin_routes import admin_bp
from .client_routes import clients_bp
from .settings_routes import settings_bp
from .fee_routes import fees_bp
from .billing_routes import billing_bp
from .media_routes import media_bp
from .period_routes import periods_bp
from .expense_routes import expenses_bp
from .employee_routes import employees_bp
from .payroll_routes import payroll_bp
from .partner_routes import partners_bp
from .platform_routes import platforms_bp
from .event_routes import events_bp
from .pl_routes import pl_bp
from .dashboard_routes import dashboard_bp
from .payment_routes import payments_bp

__all__ = [
    "auth_bp",
    "user",
    "core",
    "admin_bp",
    "clients_bp",
    "settings_bp",
    "fees_bp",
    "billing_bp",
    "media_bp",
    "periods_bp",
    "expenses_bp",
    "employees_bp",
    "payroll_bp",
    "partners_bp",
    "platforms_bp",
    "events_bp",
    "pl_bp",
    "dashboard_bp",
    "payments_bp",
]
