"""Single-page-app static file serving."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse, JSONResponse

logger = logging.getLogger(__name__)


def mount_spa(app: FastAPI, static_dir: str, index: str = "index.html") -> bool:
    """Serve ``static_dir`` for every unmatched GET, falling back to ``index``.

    Must run after all API routes are registered. Returns False (and mounts
    nothing) if the directory is missing.
    """
    root = Path(static_dir).resolve()
    if not root.is_dir():
        logger.info("Static directory %s not found; SPA serving disabled", root)
        return False

    index_path = root / index

    @app.get("/{path:path}", include_in_schema=False)
    async def spa(path: str):
        candidate = (root / path).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        if index_path.is_file():
            return FileResponse(index_path)
        return JSONResponse(status_code=404, content={"error": "not found"})

    logger.info("Serving SPA from %s", root)
    return True
