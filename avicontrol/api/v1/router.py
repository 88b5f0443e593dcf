# avicontrol/api/v1/router.py
from fastapi import APIRouter
from avicontrol.api.v1.auth import router as auth_router
from avicontrol.modules.users.router import router as users_router
from avicontrol.modules.batches.router import router as batches_router
from avicontrol.modules.orders.router import router as orders_router
from avicontrol.modules.configuration.router import router as configuration_router
from avicontrol.modules.sync.router import router as sync_router

# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

api_router.include_router(
    users_router,
    prefix="/users",
    tags=["Users"]
)

api_router.include_router(
    batches_router,
    prefix="/batches",
    tags=["Batches"]
)

api_router.include_router(
    orders_router,
    prefix="/orders",
    tags=["Orders"]
)

api_router.include_router(
    configuration_router,
    prefix="/config",
    tags=["Configuration"]
)

api_router.include_router(
    sync_router,
    prefix="/sync",
    tags=["Sync"]
)
