"""
Batch cleanup endpoint.

Mirrors the repository manager's plugin execution URL:

    POST /api/plugins/execute/cleanup?params=repos=libs-snapshot
    POST /api/plugins/execute/cleanup?repos=libs-release,libs-snapshot
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from build_retention.api.dependencies import get_triggers
from build_retention.api.middleware.logging import annotate
from build_retention.api.schemas.exceptions import NoRepositoriesError
from build_retention.api.schemas.responses import CleanupResponse
from build_retention.triggers import RetentionTriggers

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_repos(repos: list[str] | None, params: str | None) -> list[str]:
    """
    Collect repository keys from ``repos`` and plugin-style ``params``.

    ``params`` uses the ``key=v1,v2|key2=v3`` form; only ``repos`` is read.
    Order is preserved and duplicates are dropped.
    """
    values: list[str] = []
    for value in repos or []:
        values.extend(value.split(","))
    if params:
        for pair in params.split("|"):
            key, _, raw = pair.partition("=")
            if key.strip() == "repos":
                values.extend(raw.split(","))

    seen: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup(
    request: Request,
    repos: list[str] | None = Query(None, description="Repository keys to clean up"),
    params: str | None = Query(None, description="Plugin parameters, e.g. repos=a,b"),
    triggers: RetentionTriggers = Depends(get_triggers),
) -> CleanupResponse:
    """
    Apply retention to the named repositories.

    Release repositories are archived, snapshot repositories are deleted
    from; repositories in neither list are reported as skipped.
    """
    repo_keys = parse_repos(repos, params)
    if not repo_keys:
        raise NoRepositoriesError()

    logger.info(f"Cleanup requested for {', '.join(repo_keys)}")
    report = triggers.run_cleanup(repo_keys)
    annotate(
        request,
        repos=",".join(repo_keys),
        deleted=report.deleted_count,
        archived=report.archived_count,
        skipped=len(report.skipped_repos),
        success=report.success,
    )
    return CleanupResponse.from_report(report, dry_run=triggers.config.dry_run)
