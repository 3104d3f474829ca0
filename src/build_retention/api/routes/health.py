"""
Health check endpoint.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from build_retention import __version__
from build_retention.api.dependencies import get_triggers
from build_retention.api.schemas.responses import HealthResponse
from build_retention.repository.models import RepoPath
from build_retention.triggers import RetentionTriggers

router = APIRouter()


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check(
    triggers: RetentionTriggers = Depends(get_triggers),
) -> HealthResponse:
    """
    Report service status.

    Degraded when a configured repository is missing from the repository
    service (its cleanups would find nothing to process).
    """
    config = triggers.config
    repository = triggers.repository
    components: dict[str, str] = {}
    overall = "healthy"

    configured = list(config.release_repos) + list(config.snapshot_repos)
    if config.archive_repo:
        configured.append(config.archive_repo)

    for repo_key in configured:
        try:
            present = repository.exists(RepoPath(repo_key=repo_key))
        except Exception as e:
            present = False
            components[repo_key] = f"unhealthy: {e}"
            overall = "degraded"
            continue
        components[repo_key] = "healthy" if present else "missing"
        if not present:
            overall = "degraded"

    components["dry_run"] = str(config.dry_run).lower()

    return HealthResponse(
        status=overall,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
    )
