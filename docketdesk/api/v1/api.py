from fastapi import APIRouter
from docketdesk.api.v1.routes.auth import router as auth_router
from docketdesk.api.v1.routes.dockets import router as dockets_router
from docketdesk.api.v1.routes.invoices import router as invoices_router
from docketdesk.api.v1.routes.settings import router as settings_router
from docketdesk.api.v1.routes.leads import router as leads_router
from docketdesk.api.v1.routes.customers import router as customers_router
from docketdesk.api.v1.routes.reports import router as reports_router
from docketdesk.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(dockets_router)
api_router.include_router(invoices_router)
api_router.include_router(settings_router)
api_router.include_router(leads_router)
api_router.include_router(customers_router)
api_router.include_router(reports_router)
api_router.include_router(admin_router)
