"""
Dashboard API endpoints - summary cards and the next-action queue
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends

from backoffice.api.deps import get_board
from backoffice.services.aggregation import DashboardSummary, NextAction, dashboard_summary, next_actions
from backoffice.state import BoardState

router = APIRouter()


@router.get("/", response_model=DashboardSummary)
async def get_dashboard(board: BoardState = Depends(get_board)):
    """Client count, active projects, revenue, pending tasks, deadlines and next actions"""
    settings = board.settings
    summary = dashboard_summary(
        board.customers,
        board.projects,
        board.tasks,
        board.invoices,
        datetime.now(),
        pending_limit=settings.DASHBOARD_PENDING_TASKS,
        next_action_limit=settings.DASHBOARD_NEXT_ACTIONS,
        active_project_limit=settings.DASHBOARD_ACTIVE_PROJECTS,
        deadline_days=settings.UPCOMING_DEADLINE_DAYS,
        self_project_name=settings.SELF_DEV_PROJECT_NAME,
    )
    summary.load_errors = dict(board.load_errors)
    return summary


@router.get("/next-actions", response_model=List[NextAction])
async def get_next_actions(
    include_overdue: bool = False,
    limit: Optional[int] = None,
    board: BoardState = Depends(get_board),
):
    """Incomplete activities across tasks and projects, oldest first"""
    return next_actions(
        board.tasks,
        board.projects,
        board.customers,
        datetime.now().date(),
        include_overdue=include_overdue,
        limit=limit,
        self_project_name=board.settings.SELF_DEV_PROJECT_NAME,
    )
