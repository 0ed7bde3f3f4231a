from fastapi import APIRouter

from app.cashdesk.routers.health import router as health_router
from app.cashdesk.routers.pos_cash import router as pos_cash_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(pos_cash_router, prefix="/cashdesk/cash", tags=["pos-cash"])
