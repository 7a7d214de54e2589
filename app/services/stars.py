import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import utcnow
from app.models.research import ResearchRequest, ResearchStar
from app.services.research import get_research, publish

logger = logging.getLogger(__name__)


def _bump_stars(db: Session, research_id: str, delta: int) -> None:
    # SQL-side increment, never a cached read-modify-write
    db.query(ResearchRequest).filter(ResearchRequest.id == research_id).update(
        {
            ResearchRequest.stars: ResearchRequest.stars + delta,
            ResearchRequest.updated_at: utcnow(),
        },
        synchronize_session=False,
    )


def toggle_star(db: Session, research_id: str, user_id: str) -> tuple[bool, int]:
    """Flip ``user_id``'s star on a record. Returns (is_starred, stars).

    The star row and the counter change in one transaction, so
    ``stars == len(starred_by)`` holds for concurrent callers.
    """
    get_research(db, research_id)

    removed = (
        db.query(ResearchStar)
        .filter(ResearchStar.research_id == research_id, ResearchStar.user_id == user_id)
        .delete(synchronize_session=False)
    )
    if removed:
        _bump_stars(db, research_id, -1)
        is_starred = False
    else:
        try:
            db.add(ResearchStar(research_id=research_id, user_id=user_id))
            db.flush()
        except IntegrityError:
            # A concurrent toggle by the same user inserted the row first
            db.rollback()
            logger.info("Star by %s on %s already recorded", user_id, research_id)
            record = get_research(db, research_id)
            return True, record.stars
        _bump_stars(db, research_id, 1)
        is_starred = True

    db.commit()
    record = get_research(db, research_id)
    db.refresh(record)
    publish(record)
    return is_starred, record.stars
