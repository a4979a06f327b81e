# routers/__init__.py

from fastapi import APIRouter

from .documents import router as documents_router
from .payments import router as payments_router
from .statements import router as statements_router
from .messages import router as messages_router
from .tenants import router as tenants_router
from .company_groups import router as company_groups_router
from .webhooks import router as webhooks_router
from .gdpr import router as gdpr_router
from .health import router as health_router


api_router = APIRouter()

# Resource routers (all authorized through dependencies.access)
api_router.include_router(documents_router)
api_router.include_router(payments_router)
api_router.include_router(statements_router)
api_router.include_router(messages_router)
api_router.include_router(tenants_router)
api_router.include_router(company_groups_router)
api_router.include_router(webhooks_router)
api_router.include_router(gdpr_router)

# No auth
api_router.include_router(health_router)

__all__ = ["api_router"]
