from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.deps import templates, viewer_id
from app.errors import NotFound
from app.services.feed import summarize_feed
from app.services.research import completed_feed, get_research, recent_research

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def feed_page(
    request: Request,
    tag: str | None = None,
    viewer: str | None = Depends(viewer_id),
    db: Session = Depends(get_db),
):
    window_size = get_settings().FEED_WINDOW
    window = recent_research(db, window_size)
    return templates.TemplateResponse(
        request,
        "feed.html",
        {
            "items": completed_feed(window, tag=tag, limit=window_size),
            "summary": summarize_feed(window, viewer_id=viewer),
            "selected_tag": tag,
            "viewer": viewer,
        },
    )


@router.get("/articles/{research_id}", response_class=HTMLResponse)
async def article_page(
    request: Request,
    research_id: str,
    viewer: str | None = Depends(viewer_id),
    db: Session = Depends(get_db),
):
    try:
        research = get_research(db, research_id)
    except NotFound:
        return templates.TemplateResponse(
            request, "not_found.html", {"research_id": research_id}, status_code=404
        )
    return templates.TemplateResponse(
        request,
        "article.html",
        {
            "research": research,
            "is_starred": bool(viewer) and viewer in research.starred_by,
            "viewer": viewer,
        },
    )
