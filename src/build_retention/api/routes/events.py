"""
Storage event webhooks.

Lets a repository manager that cannot host the engine in-process forward its
"item created" and "before delete" notifications.
"""

import logging

from fastapi import APIRouter, Depends, Request

from build_retention.api.dependencies import get_triggers
from build_retention.api.middleware.logging import annotate
from build_retention.api.schemas.exceptions import UnknownItemError
from build_retention.api.schemas.requests import ItemEventRequest
from build_retention.api.schemas.responses import ItemEventResponse
from build_retention.core.exceptions import LookupFailure
from build_retention.repository.events import StorageEventType
from build_retention.repository.models import Item, RepoPath
from build_retention.triggers import RetentionTriggers

router = APIRouter()
logger = logging.getLogger(__name__)


def _lookup(triggers: RetentionTriggers, event: ItemEventRequest) -> Item:
    repo_path = RepoPath(repo_key=event.repo_key, path=event.path)
    try:
        return triggers.repository.get_item(repo_path)
    except LookupFailure as e:
        raise UnknownItemError(e) from e


@router.post("/item-created", response_model=ItemEventResponse)
async def item_created(
    event: ItemEventRequest,
    request: Request,
    triggers: RetentionTriggers = Depends(get_triggers),
) -> ItemEventResponse:
    """Run snapshot removal and retention for a newly created release folder."""
    item = _lookup(triggers, event)
    outcome = triggers.on_item_created(item)
    annotate(request, item=str(item.repo_path), triggered=outcome is not None)
    if outcome is not None:
        annotate(
            request,
            snapshots_deleted=len(outcome.snapshot.deleted),
            archived=outcome.retention.archived_count,
            success=outcome.success,
        )
    return ItemEventResponse(
        event=StorageEventType.ITEM_CREATED.value,
        item=str(item.repo_path),
        triggered=outcome is not None,
        outcome=outcome,
    )


@router.post("/before-delete", response_model=ItemEventResponse)
async def before_delete(
    event: ItemEventRequest,
    request: Request,
    triggers: RetentionTriggers = Depends(get_triggers),
) -> ItemEventResponse:
    """Record an upcoming deletion."""
    item = _lookup(triggers, event)
    triggers.before_delete(item)
    annotate(request, item=str(item.repo_path))
    return ItemEventResponse(
        event=StorageEventType.BEFORE_DELETE.value,
        item=str(item.repo_path),
        triggered=False,
    )
