from fastapi import APIRouter

from rental_contracts.api.v1.health import router as health_router
from rental_contracts.api.v1.offers import router as offers_router
from rental_contracts.api.v1.contracts import router as contracts_router
from rental_contracts.api.v1.change_requests import router as change_requests_router
from rental_contracts.api.v1.notifications import router as notifications_router


v1_router = APIRouter()

# ------------------------------------------------------------------
# SYSTEM / CORE
# ------------------------------------------------------------------
v1_router.include_router(health_router, tags=["health"])

# ------------------------------------------------------------------
# OFFERS / CONTRACTS
# ------------------------------------------------------------------
v1_router.include_router(offers_router, tags=["offers"])
v1_router.include_router(contracts_router, tags=["contracts"])
v1_router.include_router(change_requests_router, tags=["change-requests"])

# ------------------------------------------------------------------
# NOTIFICATIONS
# ------------------------------------------------------------------
v1_router.include_router(notifications_router, tags=["notifications"])
