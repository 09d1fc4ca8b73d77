"""
Activity sub-log - dated journal entries embedded in projects and tasks.

Every operation reads the owner's whole list, modifies it and writes it back
through a partial update of the owner. Two callers working on the same
owner concurrently can overwrite each other's change (last writer wins).
"""
import uuid
from datetime import date
from typing import List, Optional, Union

from backoffice.models.enums import ActivityType
from backoffice.schemas import Activity, Project, Task
from backoffice.services.aggregation import OwnerKind
from backoffice.state import BoardState
from backoffice.utils.helpers import utc_now
from backoffice.utils.logger import get_logger

logger = get_logger(__name__)

Owner = Union[Project, Task]


def _get_owner(board: BoardState, kind: OwnerKind, owner_id: str) -> Optional[Owner]:
    if kind == OwnerKind.TASK:
        return board.get_task(owner_id)
    return board.get_project(owner_id)


async def _save(board: BoardState, kind: OwnerKind, owner_id: str, activities: List[Activity]) -> Optional[Owner]:
    if kind == OwnerKind.TASK:
        return await board.update_task(owner_id, {"activities": activities})
    return await board.update_project(owner_id, {"activities": activities})


def sort_newest_first(activities: List[Activity]) -> List[Activity]:
    return sorted(activities, key=lambda a: a.date, reverse=True)


def incomplete_activities(owner: Owner) -> List[Activity]:
    return [a for a in owner.activities if not a.completed]


def find_activity(owner: Owner, activity_id: str) -> Optional[Activity]:
    return next((a for a in owner.activities if a.id == activity_id), None)


async def add_activity(
    board: BoardState,
    kind: OwnerKind,
    owner_id: str,
    activity_date: date,
    content: str,
    activity_type: ActivityType = ActivityType.OTHER,
) -> Optional[Activity]:
    """Append an incomplete activity; None when the owner is unknown or the write fails."""
    owner = _get_owner(board, kind, owner_id)
    if owner is None:
        return None

    activity = Activity(
        id=str(uuid.uuid4()),
        date=activity_date,
        type=activity_type,
        content=content,
        completed=False,
        created_at=utc_now(),
    )
    updated = await _save(board, kind, owner_id, sort_newest_first([activity, *owner.activities]))
    if updated is None:
        return None
    logger.info(f"Added activity {activity.id} to {kind.value} {owner_id}")
    return activity


async def remove_activity(board: BoardState, kind: OwnerKind, owner_id: str, activity_id: str) -> bool:
    """False when the owner or activity is unknown, or the write fails."""
    owner = _get_owner(board, kind, owner_id)
    if owner is None:
        return False
    remaining = [a for a in owner.activities if a.id != activity_id]
    if len(remaining) == len(owner.activities):
        return False
    return await _save(board, kind, owner_id, remaining) is not None


async def toggle_activity_completed(
    board: BoardState, kind: OwnerKind, owner_id: str, activity_id: str
) -> Optional[Activity]:
    """Flip an activity's completed flag; returns the activity as saved."""
    owner = _get_owner(board, kind, owner_id)
    if owner is None:
        return None

    toggled = None
    activities = []
    for activity in owner.activities:
        if activity.id == activity_id:
            activity = activity.model_copy(update={"completed": not activity.completed})
            toggled = activity
        activities.append(activity)
    if toggled is None:
        return None

    if await _save(board, kind, owner_id, activities) is None:
        return None
    return toggled
