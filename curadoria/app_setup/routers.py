"""
Registre central des routers (API v1, admin, health).
"""
from fastapi import FastAPI
from curadoria.payments import views as payments_views
from curadoria.entitlements import views as entitlements_views
from curadoria.invoices import views as invoices_views
from curadoria.admin.views import router as admin_router
from curadoria.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(payments_views.router)
    app.include_router(entitlements_views.router)
    app.include_router(invoices_views.router)
    # Admin
    app.include_router(admin_router)
    # Health & monitoring
    app.include_router(health_router)
