"""Project selection by repository path."""

import logging
from typing import Sequence

from .models import WILDCARD

logger = logging.getLogger(__name__)


def is_path_in_selected_projects(rel_path: str, selected_projects: Sequence[str]) -> bool:
    """
    Decide whether ``rel_path`` belongs to one of the selected projects.

    A wildcard as the first entry selects everything. Otherwise the path is
    selected when it contains any entry as a substring (case-sensitive),
    checked in list order. An empty selection selects nothing.

    Args:
        rel_path: Path relative to the repository root
        selected_projects: Ordered project substrings, or ``["*"]``

    Returns:
        True if the path is selected
    """
    selected = False
    if selected_projects and selected_projects[0] == WILDCARD:
        selected = True
    else:
        for project in selected_projects:
            logger.debug(f"Checking project '{project}' against path '{rel_path}'")
            if project in rel_path:
                selected = True
                break

    logger.debug(f"Path '{rel_path}' selected: {selected}")
    return selected
