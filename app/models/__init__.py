from app.models.research import ResearchRequest, ResearchStar

__all__ = [
    "ResearchRequest",
    "ResearchStar",
]
