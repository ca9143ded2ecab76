from fastapi import APIRouter

from .endpoints import health, midtrans

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(midtrans.router)
