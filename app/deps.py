from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def viewer_id(request: Request) -> str | None:
    """Opaque viewer identity supplied by the identity provider, if any.

    Accepted from the ``X-User-Id`` header or a ``viewer`` query parameter.
    """
    return request.headers.get("x-user-id") or request.query_params.get("viewer") or None
