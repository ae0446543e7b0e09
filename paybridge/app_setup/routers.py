"""
Registre central des routers.
- API v1: commandes (création, vérification, enveloppes)
- Health: health_router
"""
from fastapi import FastAPI
from paybridge.orders import views as orders_views
from paybridge.health.router import router as health_router


def register_routers(app: FastAPI) -> None:
    app.include_router(orders_views.router)
    # Health & monitoring
    app.include_router(health_router)
