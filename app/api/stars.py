import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import InvalidRequest, ResearchError
from app.schemas.research import StarResult, StarToggle
from app.services.stars import toggle_star

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=StarResult)
async def star_research(data: StarToggle, db: Session = Depends(get_db)):
    """Toggle the caller's star on a research record."""
    if not data.research_id or not data.user_id:
        raise InvalidRequest("Missing required fields")

    try:
        is_starred, stars = toggle_star(db, data.research_id, data.user_id)
    except ResearchError:
        raise
    except Exception as e:
        logger.exception("Star toggle failed for %s", data.research_id)
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to star research"})

    return StarResult(is_starred=is_starred, stars=stars)
