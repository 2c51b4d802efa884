from fastapi import APIRouter

from app.api.auth import router as auth_router
from app.api.expenses import router as expenses_router
from app.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(expenses_router)
api_router.include_router(users_router)
