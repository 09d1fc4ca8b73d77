"""
Project API endpoints - projects with task progress and the activity log
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from backoffice.api.deps import get_board, require, require_loaded
from backoffice.models.enums import ProjectCategory, ProjectStatus, ProjectType
from backoffice.schemas import (
    Activity,
    ActivityCreate,
    Invoice,
    Project,
    ProjectCreate,
    Record,
    Task,
)
from backoffice.services import activities
from backoffice.services.aggregation import (
    OwnerKind,
    customer_name,
    filter_projects,
    sort_invoices_by_issue_date,
    sort_tasks_default,
    task_progress,
)
from backoffice.services.numbering import next_project_number
from backoffice.state import BoardState
from backoffice.store import InvalidRecordError, StoreError

router = APIRouter()


# --- Pydantic Schemas ---

class ProjectUpdate(Record):
    project_number: Optional[str] = None
    external_ref: Optional[str] = None
    customer_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    type: Optional[ProjectType] = None
    category: Optional[ProjectCategory] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    budget: Optional[int] = None
    domain_info: Optional[str] = None
    ai_consult_url: Optional[str] = None
    code_folder: Optional[str] = None
    meeting_folder: Optional[str] = None
    contract_folder: Optional[str] = None
    staging_url: Optional[str] = None
    production_url: Optional[str] = None


class ProjectResponse(Project):
    customer_name: Optional[str] = None
    progress: int = 0


class ProjectDetail(ProjectResponse):
    tasks: List[Task] = []
    invoices: List[Invoice] = []


def _build_project_response(project: Project, board: BoardState) -> ProjectResponse:
    return ProjectResponse(
        **project.model_dump(),
        customer_name=customer_name(board.customers, project.customer_id),
        progress=task_progress(project.id, board.tasks),
    )


# --- Endpoints ---

@router.get("/", response_model=List[ProjectResponse])
async def list_projects(
    type: Optional[ProjectType] = None,
    status: Optional[ProjectStatus] = None,
    board: BoardState = Depends(get_board),
):
    """List projects. type filters on the effective type (absent = client)"""
    require_loaded(board, "projects")
    return [_build_project_response(p, board) for p in filter_projects(board.projects, type, status)]


@router.get("/next-number")
async def get_next_project_number(
    type: ProjectType = ProjectType.CLIENT,
    board: BoardState = Depends(get_board),
):
    return {"projectNumber": next_project_number(board.projects, type, date.today())}


@router.get("/{project_id}", response_model=ProjectDetail)
async def get_project(project_id: str, board: BoardState = Depends(get_board)):
    project = require(board.get_project(project_id), "Project")
    return ProjectDetail(
        **_build_project_response(project, board).model_dump(),
        tasks=sort_tasks_default(board.tasks_by_project(project_id)),
        invoices=sort_invoices_by_issue_date(board.invoices_by_project(project_id)),
    )


@router.post("/", response_model=ProjectResponse)
async def create_project(data: ProjectCreate, board: BoardState = Depends(get_board)):
    """Create a project; the project number is generated when not supplied"""
    require(board.get_customer(data.customer_id), "Customer")
    try:
        project = await board.add_project(data)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to create project: {e}")
    return _build_project_response(project, board)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    board: BoardState = Depends(get_board),
):
    require(board.get_project(project_id), "Project")
    try:
        project = await board.update_project(project_id, data.model_dump(exclude_unset=True))
    except InvalidRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if project is None:
        raise HTTPException(status_code=503, detail="Failed to update project")
    return _build_project_response(project, board)


@router.delete("/{project_id}")
async def delete_project(project_id: str, board: BoardState = Depends(get_board)):
    """Delete a project with its tasks and invoices"""
    require(board.get_project(project_id), "Project")
    if not await board.delete_project(project_id):
        raise HTTPException(status_code=503, detail="Failed to delete project")
    return {"message": "Project deleted"}


# --- Activity Endpoints ---

@router.post("/{project_id}/activities", response_model=Activity)
async def add_project_activity(
    project_id: str,
    data: ActivityCreate,
    board: BoardState = Depends(get_board),
):
    require(board.get_project(project_id), "Project")
    activity = await activities.add_activity(
        board, OwnerKind.PROJECT, project_id, data.date, data.content, data.type
    )
    if activity is None:
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return activity


@router.post("/{project_id}/activities/{activity_id}/toggle", response_model=Activity)
async def toggle_project_activity(
    project_id: str,
    activity_id: str,
    board: BoardState = Depends(get_board),
):
    project = require(board.get_project(project_id), "Project")
    require(activities.find_activity(project, activity_id), "Activity")
    activity = await activities.toggle_activity_completed(board, OwnerKind.PROJECT, project_id, activity_id)
    if activity is None:
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return activity


@router.delete("/{project_id}/activities/{activity_id}")
async def delete_project_activity(
    project_id: str,
    activity_id: str,
    board: BoardState = Depends(get_board),
):
    project = require(board.get_project(project_id), "Project")
    require(activities.find_activity(project, activity_id), "Activity")
    if not await activities.remove_activity(board, OwnerKind.PROJECT, project_id, activity_id):
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return {"message": "Activity deleted"}
