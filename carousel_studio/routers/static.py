from pathlib import Path

from fastapi import APIRouter
from fastapi.responses import FileResponse, PlainTextResponse

from ..core.config import settings


router = APIRouter(tags=["static"])

CONTENT_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".svg": "image/svg+xml",
    ".png": "image/png",
}


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), "application/octet-stream")


def resolve_public_path(url_path: str, public_dir: Path) -> Path | None:
    """Map a URL path to a file under ``public_dir``; None when it escapes the root."""
    public_dir = public_dir.resolve()
    requested = "index.html" if url_path in ("", "/") else url_path.lstrip("/")
    try:
        target = (public_dir / requested).resolve()
    except ValueError:
        # embedded NUL and similar paths the filesystem cannot name
        return None
    if target != public_dir and not target.is_relative_to(public_dir):
        return None
    return target


@router.get("/{full_path:path}", include_in_schema=False)
async def serve_static(full_path: str):
    public_dir = settings.PUBLIC_DIR
    target = resolve_public_path(full_path, public_dir)
    if target is None:
        return PlainTextResponse("Forbidden", status_code=403)

    if target.is_file():
        cache = "no-cache" if target.suffix.lower() == ".html" else "public, max-age=3600"
        return FileResponse(target, media_type=content_type_for(target), headers={"Cache-Control": cache})

    # SPA fallback: unknown paths get the main document
    index = public_dir / "index.html"
    if not index.is_file():
        return PlainTextResponse("Server error", status_code=500)
    return FileResponse(index, media_type=CONTENT_TYPES[".html"], headers={"Cache-Control": "no-cache"})
