from fastapi import APIRouter

from app.api.feed import router as feed_router
from app.api.research import router as research_router
from app.api.stars import router as stars_router

api_router = APIRouter()
api_router.include_router(research_router, prefix="/research", tags=["research"])
api_router.include_router(stars_router, prefix="/star", tags=["stars"])
api_router.include_router(feed_router, tags=["feed"])
