"""
Age evaluation for retention candidates.

The cutoff is ``keep_days`` truncated to whole months (30 days each) and
then subtracted as calendar months, so 180 days means six calendar months
back from now rather than 180 x 24 hours.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from dateutil.relativedelta import relativedelta

from build_retention.repository.models import Item

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


def months_for_days(keep_days: int) -> int:
    """Whole months covered by ``keep_days`` (truncating)."""
    if keep_days < 0:
        raise ValueError(f"keep_days must be >= 0, got {keep_days}")
    return keep_days // DAYS_PER_MONTH


def age_cutoff(keep_days: int, now: datetime | None = None) -> datetime:
    """Instant before which an item counts as older than ``keep_days``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - relativedelta(months=months_for_days(keep_days))


def any_child_older_than(
    children: Iterable[Item],
    keep_days: int,
    now: datetime | None = None,
) -> bool:
    """
    Check whether any item is outside the retention window.

    Items are scanned in the order given; the first one whose last-modified
    time is not strictly after the cutoff short-circuits with True.

    Args:
        children: Items to check, typically a candidate's own children
        keep_days: Minimum age in days
        now: Reference instant (defaults to the current UTC time)

    Returns:
        True if at least one item is at or before the cutoff
    """
    cutoff = age_cutoff(keep_days, now)
    for child in children:
        if child.last_modified > cutoff:
            logger.debug(f"{child.name} younger than {keep_days} days")
        else:
            logger.info(f"{child.name} older than {keep_days} days")
            return True
    return False
