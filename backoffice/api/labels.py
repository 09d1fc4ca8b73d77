"""
Label API endpoint - display labels for the enumerated values
"""
from fastapi import APIRouter

from backoffice.models.enums import (
    ACTIVITY_TYPE_ICONS,
    ACTIVITY_TYPE_LABELS,
    INVOICE_STATUS_LABELS,
    PROJECT_CATEGORY_LABELS,
    PROJECT_STATUS_LABELS,
    PROJECT_TYPE_LABELS,
    TASK_PRIORITY_LABELS,
    TASK_STATUS_LABELS,
)

router = APIRouter()


def _by_value(labels: dict) -> dict:
    return {member.value: label for member, label in labels.items()}


@router.get("/")
async def get_labels():
    return {
        "projectType": _by_value(PROJECT_TYPE_LABELS),
        "projectCategory": _by_value(PROJECT_CATEGORY_LABELS),
        "projectStatus": _by_value(PROJECT_STATUS_LABELS),
        "taskStatus": _by_value(TASK_STATUS_LABELS),
        "taskPriority": _by_value(TASK_PRIORITY_LABELS),
        "invoiceStatus": _by_value(INVOICE_STATUS_LABELS),
        "activityType": _by_value(ACTIVITY_TYPE_LABELS),
        "activityIcon": _by_value(ACTIVITY_TYPE_ICONS),
    }
