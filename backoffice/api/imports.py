"""
Import API endpoints - legacy ledger CSV uploads
"""
import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic.alias_generators import to_camel

from backoffice.api.deps import get_board
from backoffice.services.csv_import import CsvImportError, ImportKind, ImportResult, import_ledger, preview_rows
from backoffice.state import BoardState

router = APIRouter()
logger = logging.getLogger(__name__)


async def _read_csv(file: UploadFile) -> str:
    content = await file.read()
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")


def _camel_keys(row: dict) -> dict:
    return {to_camel(key): value for key, value in row.items()}


@router.post("/{kind}/preview")
async def preview_import(kind: ImportKind, file: UploadFile = File(...)):
    """Rows that would be imported, without writing anything"""
    rows = preview_rows(kind, await _read_csv(file))
    return {"kind": kind.value, "count": len(rows), "rows": [_camel_keys(asdict(row)) for row in rows]}


@router.post("/{kind}", response_model=ImportResult)
async def run_import(
    kind: ImportKind,
    file: UploadFile = File(...),
    board: BoardState = Depends(get_board),
):
    """Import a ledger. Records created before a failure are kept"""
    text = await _read_csv(file)
    logger.info(f"Import upload {file.filename} ({kind.value}, {len(text)} chars)")
    try:
        return await import_ledger(board, kind, text)
    except CsvImportError as e:
        raise HTTPException(
            status_code=500,
            detail={"message": str(e), "result": e.result.model_dump(by_alias=True)},
        )
