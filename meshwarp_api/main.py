from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from meshwarp_playground.logs import configure_logging
from meshwarp_playground.settings import load_settings

from .adapters import sessions as session_adapter
from .routers import sessions as sessions_router


settings = load_settings()
configure_logging(settings.log_level)
session_adapter.configure(settings)

app = FastAPI(title="MeshWarp API", version="0.1.0", description="In-memory mesh editing sessions")
app.include_router(sessions_router.router)


@app.get("/")
async def index() -> Dict[str, Any]:
    return {
        "name": "meshwarp-api",
        "version": app.version,
        "routes": [
            {"path": "/sessions", "methods": ["GET", "POST"]},
            {"path": "/sessions/{id}", "methods": ["GET", "DELETE"]},
        ],
        "session_count": session_adapter.session_count(),
    }
