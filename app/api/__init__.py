# API routes
from fastapi import APIRouter
from app.api.quizzes import router as quizzes_router
from app.api.sessions import router as sessions_router
from app.api.doctors import router as doctors_router

# Combine all routers
router = APIRouter()
router.include_router(quizzes_router)
router.include_router(sessions_router)
router.include_router(doctors_router)

__all__ = ["router"]
