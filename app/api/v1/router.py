from fastapi import APIRouter

from app.api.v1 import health, users, ledgers, categories, bills, statistics, groups

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(ledgers.router, prefix="/ledgers", tags=["ledgers"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
# Registered before bills so /bills/statistics is not captured by /bills/{bill_id}
api_router.include_router(statistics.router, prefix="/bills/statistics", tags=["statistics"])
api_router.include_router(bills.router, prefix="/bills", tags=["bills"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
