"""AgentHub REST API Server.

FastAPI server backing the dashboard: registry browsing, overlay and
template editing, and score updates. Port 8770 by default.

Usage:
    python -m agenthub.interfaces.api_server
    agenthub-api

Endpoints:
    GET  /          API info
    GET  /health    Health check

    GET  /api/projects                 Registered projects

    GET    /api/overlays               Every project's overlay
    GET    /api/overlays/{project}     One overlay
    PUT    /api/overlays/{project}     Replace an overlay
    DELETE /api/overlays/{project}     Reset an overlay to empty

    GET  /api/templates                Template listing
    GET  /api/templates/{name}         Template content
    POST /api/templates/{name}         Save a template and regenerate

    GET  /api/scores/{project}                     Score document
    POST /api/scores/{project}/{agent}/feedback    Record a task outcome
    POST /api/scores/{project}/{agent}/penalty     Apply a penalty
"""

import logging
import sys
from typing import Any, Optional

from fastapi import Body, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from agenthub import config as cfg
from agenthub import settings as settings_mod
from agenthub.errors import AgentHubError, ConflictError, InvalidInputError, NotFoundError, OverlayNotFoundError
from agenthub.hub import AgentHub

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger("agenthub-api")

# =============================================================================
# FastAPI app
# =============================================================================

app = FastAPI(
    title="AgentHub API",
    description="Agent registry, per-project overlays, templates and score ledger.",
    version=cfg.SERVER_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton hub instance
_hub: Optional[AgentHub] = None


def get_hub() -> AgentHub:
    global _hub
    if _hub is None:
        settings_mod.load_on_startup()
        _hub = AgentHub()
        _hub.initialize()
        logger.info(f"AgentHub initialized ({_hub.hub_dir})")
    return _hub


@app.exception_handler(AgentHubError)
async def agenthub_error_handler(request: Request, exc: AgentHubError):
    if isinstance(exc, NotFoundError):
        status = 404
    elif isinstance(exc, InvalidInputError):
        status = 400
    elif isinstance(exc, ConflictError):
        status = 409
    else:
        status = 500
    return JSONResponse(status_code=status, content={"detail": exc.message, **exc.details})


# =============================================================================
# Request/Response models
# =============================================================================

class TemplateSaveRequest(BaseModel):
    content: Optional[str] = None

class FeedbackRequest(BaseModel):
    type: str
    description: Optional[str] = None

class PenaltyRequest(BaseModel):
    penalty: str
    description: Optional[str] = None


# =============================================================================
# Info
# =============================================================================

@app.get("/")
async def root():
    """API info and version."""
    return {
        "name": cfg.SERVER_NAME,
        "version": cfg.SERVER_VERSION,
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check."""
    hub = get_hub()
    return {
        "status": "ok" if hub.registry_store.exists() else "degraded",
        "hub_dir": str(hub.hub_dir),
        "registry": hub.registry_store.exists(),
    }


@app.get("/api/projects")
async def projects():
    """Registered projects keyed by id."""
    return {pid: p.to_json_dict() for pid, p in get_hub().list_projects().items()}


# =============================================================================
# Overlays
# =============================================================================

@app.get("/api/overlays")
async def overlays_list():
    """Every readable overlay keyed by project."""
    return {pid: o.to_json_dict() for pid, o in get_hub().list_overlays().items()}


@app.get("/api/overlays/{project}")
async def overlay_get(project: str):
    found = get_hub().get_overlay(project)
    if found is None:
        raise OverlayNotFoundError(project)
    return {"overlay": found.to_json_dict(), "source": "local"}


@app.put("/api/overlays/{project}")
async def overlay_put(project: str, payload: Any = Body(None)):
    """Replace a project's overlay. ``version`` and ``project`` are required."""
    saved = get_hub().save_overlay(project, payload)
    return {"saved": True, "project": project, "lastUpdated": saved.last_updated}


@app.delete("/api/overlays/{project}")
async def overlay_delete(project: str):
    """Reset an overlay to the empty document."""
    get_hub().reset_overlay(project)
    return {"deleted": True, "project": project}


# =============================================================================
# Templates
# =============================================================================

@app.get("/api/templates")
async def templates_list():
    return get_hub().list_templates()


@app.get("/api/templates/{name}")
async def template_get(name: str):
    return {"content": get_hub().read_template(name), "source": "local"}


@app.post("/api/templates/{name}")
async def template_save(name: str, req: TemplateSaveRequest):
    """Save a template, back up the old version and regenerate affected agents."""
    result = get_hub().save_template(name, req.content)
    logger.info(f"Template {name} saved, {len(result['updated'])} projects regenerated")
    return result


# =============================================================================
# Scores
# =============================================================================

@app.get("/api/scores/{project}")
async def scores_get(project: str):
    return get_hub().get_scores(project).to_json_dict()


@app.post("/api/scores/{project}/{agent}/feedback")
async def scores_feedback(project: str, agent: str, req: FeedbackRequest):
    record, completed = get_hub().apply_feedback(project, agent, req.type, req.description)
    return {
        "agent": agent,
        "totalScore": record.total_score,
        "rank": record.rank,
        "task": record.recent_tasks[0].to_json_dict(),
        "completedMissions": [m.to_json_dict() for m in completed],
    }


@app.post("/api/scores/{project}/{agent}/penalty")
async def scores_penalty(project: str, agent: str, req: PenaltyRequest):
    record, entry = get_hub().apply_penalty(project, agent, req.penalty, req.description)
    return {
        "agent": agent,
        "totalScore": record.total_score,
        "rank": record.rank,
        "warnings": record.warnings,
        "penalty": entry.to_json_dict(),
    }


# =============================================================================
# Main entry point
# =============================================================================

def main():
    import uvicorn
    settings_mod.load_on_startup()
    logger.info(f"Starting AgentHub API on {cfg.API_HOST}:{cfg.API_PORT}...")
    uvicorn.run(
        "agenthub.interfaces.api_server:app",
        host=cfg.API_HOST,
        port=cfg.API_PORT,
        log_level="info",
    )


if __name__ == "__main__":
    main()
