from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.events import router as events_router
from app.api.v1.routes.staff import router as staff_router
from app.api.v1.routes.allocations import router as allocations_router
from app.api.v1.routes.cash_orders import router as cash_orders_router
from app.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(events_router)
api_router.include_router(staff_router)
api_router.include_router(allocations_router)
api_router.include_router(cash_orders_router)
api_router.include_router(admin_router)
