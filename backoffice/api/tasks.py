"""
Task API endpoints - task list with sorting, status moves and the activity log
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from backoffice.api.deps import get_board, require, require_loaded
from backoffice.models.enums import TaskPriority, TaskStatus
from backoffice.schemas import Activity, ActivityCreate, Record, Task, TaskCreate
from backoffice.services import activities
from backoffice.services.aggregation import OwnerKind, TaskSortKey, filter_tasks, sort_tasks
from backoffice.state import BoardState
from backoffice.store import InvalidRecordError, StoreError

router = APIRouter()


# --- Pydantic Schemas ---

class TaskUpdate(Record):
    task_number: Optional[str] = None
    project_id: Optional[str] = None
    customer_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    domain_info: Optional[str] = None
    ai_consult_url: Optional[str] = None
    code_folder: Optional[str] = None
    meeting_folder: Optional[str] = None
    contract_folder: Optional[str] = None
    staging_url: Optional[str] = None
    production_url: Optional[str] = None


class TaskMove(Record):
    status: TaskStatus


# --- Endpoints ---

@router.get("/", response_model=List[Task])
async def list_tasks(
    status: Optional[TaskStatus] = None,
    project_id: Optional[str] = None,
    sort: Optional[TaskSortKey] = None,
    descending: bool = False,
    board: BoardState = Depends(get_board),
):
    """
    List tasks. Without sort: status (todo, in progress, done) then priority
    (high first). sort=due_date places undated tasks as 9999-12-31.
    """
    require_loaded(board, "tasks")
    tasks = filter_tasks(board.tasks, status)
    if project_id:
        tasks = [t for t in tasks if t.project_id == project_id]
    return sort_tasks(tasks, sort, descending, board.projects)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: str, board: BoardState = Depends(get_board)):
    return require(board.get_task(task_id), "Task")


@router.post("/", response_model=Task)
async def create_task(data: TaskCreate, board: BoardState = Depends(get_board)):
    """Create a task; T{year}- or DEV{year}- numbering by the owning project"""
    require(board.get_project(data.project_id), "Project")
    try:
        return await board.add_task(data)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=f"Failed to create task: {e}")


@router.put("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    board: BoardState = Depends(get_board),
):
    require(board.get_task(task_id), "Task")
    try:
        task = await board.update_task(task_id, data.model_dump(exclude_unset=True))
    except InvalidRecordError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if task is None:
        raise HTTPException(status_code=503, detail="Failed to update task")
    return task


@router.post("/{task_id}/move", response_model=Task)
async def move_task(task_id: str, data: TaskMove, board: BoardState = Depends(get_board)):
    require(board.get_task(task_id), "Task")
    task = await board.move_task(task_id, data.status)
    if task is None:
        raise HTTPException(status_code=503, detail="Failed to move task")
    return task


@router.delete("/{task_id}")
async def delete_task(task_id: str, board: BoardState = Depends(get_board)):
    require(board.get_task(task_id), "Task")
    if not await board.delete_task(task_id):
        raise HTTPException(status_code=503, detail="Failed to delete task")
    return {"message": "Task deleted"}


# --- Activity Endpoints ---

@router.post("/{task_id}/activities", response_model=Activity)
async def add_task_activity(
    task_id: str,
    data: ActivityCreate,
    board: BoardState = Depends(get_board),
):
    require(board.get_task(task_id), "Task")
    activity = await activities.add_activity(
        board, OwnerKind.TASK, task_id, data.date, data.content, data.type
    )
    if activity is None:
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return activity


@router.post("/{task_id}/activities/{activity_id}/toggle", response_model=Activity)
async def toggle_task_activity(
    task_id: str,
    activity_id: str,
    board: BoardState = Depends(get_board),
):
    task = require(board.get_task(task_id), "Task")
    require(activities.find_activity(task, activity_id), "Activity")
    activity = await activities.toggle_activity_completed(board, OwnerKind.TASK, task_id, activity_id)
    if activity is None:
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return activity


@router.delete("/{task_id}/activities/{activity_id}")
async def delete_task_activity(
    task_id: str,
    activity_id: str,
    board: BoardState = Depends(get_board),
):
    task = require(board.get_task(task_id), "Task")
    require(activities.find_activity(task, activity_id), "Activity")
    if not await activities.remove_activity(board, OwnerKind.TASK, task_id, activity_id):
        raise HTTPException(status_code=503, detail="Failed to save activity")
    return {"message": "Activity deleted"}
