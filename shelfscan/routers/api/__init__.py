from fastapi import APIRouter

from shelfscan.routers.api import books, health

router = APIRouter(prefix="/api")
router.include_router(books.router)
router.include_router(health.router)
