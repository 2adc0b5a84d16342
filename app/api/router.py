from fastapi import APIRouter
from app.modules.availability.router import router as availability_router
from app.modules.growth.router import router as growth_router

api_router = APIRouter()
api_router.include_router(availability_router, tags=["availability"])
api_router.include_router(growth_router, tags=["growth"])

@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
