from .admin import router as admin_router
from .catalog import router as catalog_router
from .orders import router as orders_router
from .password_reset import router as password_reset_router
from .payments import router as payments_router
from .providers import router as providers_router
from .two_factor import router as two_factor_router

__all__ = [
    "admin_router",
    "catalog_router",
    "orders_router",
    "password_reset_router",
    "payments_router",
    "providers_router",
    "two_factor_router",
]
