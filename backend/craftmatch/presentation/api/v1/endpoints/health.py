"""Health check endpoint — never touches the profile store, always available."""

from fastapi import APIRouter, Request

from craftmatch.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Liveness plus a short summary of the matching pipeline's readiness."""
    settings = get_settings()
    container = getattr(request.app.state, "container", None)
    body = {
        "status": "healthy" if container is not None else "starting",
        "version": settings.app_version,
        "environment": settings.app_env,
    }
    if container is None:
        return body

    status = container.orchestrator.system_status()
    if not status.ai_configured:
        ai_fallback = "disabled"
    else:
        ai_fallback = "healthy" if status.ai_service_healthy else "degraded"
    body.update(
        professions=len(status.professions),
        aiFallback=ai_fallback,
        decisionRecorder="running" if container.recorder.running else "stopped",
    )
    return body
