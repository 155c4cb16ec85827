"""Import router: employee template download and bulk Excel upload."""
import zipfile
from fastapi import APIRouter, HTTPException, Query, Depends, UploadFile, File
from fastapi.responses import JSONResponse, Response as _Response
from starlette.concurrency import run_in_threadpool
from openpyxl.utils.exceptions import InvalidFileException
from hrlib.employee_import import (
    GENERIC_FAILURE, TEMPLATE_FILENAME, XLSX_MIME, build_template, import_employees, read_rows,
)
from hrlib.session import ConsoleSession
from ..dependencies import require_session, get_source, _after_mutation, _logger

router = APIRouter()


def _xlsx_response(content: bytes, filename: str) -> _Response:
    return _Response(
        content=content,
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/api/import/employees/template", tags=["Import"], summary="Download employee import template")
def get_employee_template(session: ConsoleSession = Depends(require_session)):
    return _xlsx_response(build_template(), TEMPLATE_FILENAME)


@router.post(
    "/api/import/employees",
    tags=["Import"],
    summary="Import employees from Excel",
    description=(
        "Upload a filled-in template. Rows are created one after another.\n\n"
        "By default the first rejected row stops the import; rows before it stay created. "
        "Pass `stop_on_error=false` to attempt every row and get a per-row report."
    ),
)
async def upload_employees(
    file: UploadFile = File(...),
    stop_on_error: bool = Query(True),
    session: ConsoleSession = Depends(require_session),
):
    content = await file.read()
    try:
        rows = read_rows(content)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        _logger.warning("Unreadable import workbook filename=%s error=%s", file.filename, e)
        raise HTTPException(status_code=400, detail="Please upload a valid Excel (.xlsx) file")
    if not rows:
        raise HTTPException(status_code=400, detail="The uploaded file has no employee rows")

    result = await run_in_threadpool(
        import_employees, rows, get_source(), session, stop_on_error=stop_on_error,
    )
    if result.succeeded:
        _after_mutation(session, 'employees')
    if not result.ok:
        return JSONResponse(status_code=502, content={"detail": GENERIC_FAILURE, **result.to_dict()})
    return result.to_dict()
