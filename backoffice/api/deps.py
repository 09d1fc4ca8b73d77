"""
Shared API dependencies
"""
from fastapi import HTTPException, Request

from backoffice.state import BoardState


def get_board(request: Request) -> BoardState:
    """The application's BoardState, loaded at startup."""
    return request.app.state.board


def require(entity, name: str):
    if entity is None:
        raise HTTPException(status_code=404, detail=f"{name} not found")
    return entity


def require_loaded(board: BoardState, collection: str) -> None:
    """503 while a collection has never been loaded from storage"""
    if collection in board.load_errors and collection not in board.loaded:
        raise HTTPException(
            status_code=503,
            detail=f"{collection} could not be loaded: {board.load_errors[collection]}",
        )
