"""Employees router: CRUD with attachments, selection and leave-type assignment."""
from datetime import date
from fastapi import APIRouter, HTTPException, Query, Depends, Form, UploadFile, File
from pydantic import BaseModel, ValidationError as PydanticValidationError
from typing import Optional, List
from hrlib.screens import SCREENS
from hrlib.session import ConsoleSession
from hrlib.source import RecordSourceError
from hrlib.validation import ValidationError, validate_employee, check_cv_upload, check_photo_upload
from ..dependencies import (
    require_session, get_source, _bad_request, _logger, _after_mutation,
    list_records, fetch_record, create_record, update_record, delete_record,
)
from .views import render_screen, visible_ids

router = APIRouter()

_SCREEN = SCREENS['employees']


class EmployeeBody(BaseModel):
    # Defaults are permissive: the form rules in hrlib.validation produce
    # the operator-facing messages.
    fullName: str = ''
    email: str = ''
    officialPhone: str = ''
    personalPhone: Optional[str] = None
    presentAddress: str = ''
    permanentAddress: Optional[str] = None
    emergencyContactName: Optional[str] = None
    emergencyContactPhone: Optional[str] = None
    dob: str = ''
    doj: str = ''
    gender: str = 'Male'
    bloodGroup: Optional[str] = None
    basicSalary: Optional[float] = None
    grossSalary: Optional[float] = None
    isActive: int = 1
    empCode: str = ''
    departmentId: Optional[int] = None
    designationId: Optional[int] = None
    employeeTypeId: Optional[int] = None
    officeTimingId: Optional[int] = None
    leaveTypeIds: List[int] = []


def _parse_details(raw: str) -> dict:
    try:
        body = EmployeeBody.model_validate_json(raw)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(x) for x in first.get("loc", ()))
        raise HTTPException(status_code=400, detail=f"Invalid employee details: {field or 'body'}")
    return body.model_dump()


def _attachments(photo: Optional[UploadFile], cv: Optional[UploadFile]) -> dict:
    """Validate and read the optional uploads; raises before any network call."""
    files = {}
    if cv is not None and cv.filename:
        check_cv_upload(cv.content_type)
        files['cvUrl'] = (cv.filename, cv.file.read(), cv.content_type)
    if photo is not None and photo.filename:
        check_photo_upload(photo.content_type)
        files['photoUrl'] = (photo.filename, photo.file.read(), photo.content_type)
    return files


@router.get("/api/employees", tags=["Employees"], summary="List employees")
def get_employees(session: ConsoleSession = Depends(require_session)):
    return list_records('employees', session)


# ── Selection (must be registered before /api/employees/{emp_id}) ─

class ToggleBody(BaseModel):
    employeeId: int
    checked: Optional[bool] = None


class SelectAllBody(BaseModel):
    checked: bool


def _selection_payload(session: ConsoleSession) -> dict:
    page, state = render_screen(_SCREEN, session)
    return state.selection.summary(visible_ids(page, _SCREEN))


@router.get("/api/employees/selection", tags=["Employees"], summary="Current selection",
            description="Selected ids plus the header checkbox state for the current page.")
def get_selection(session: ConsoleSession = Depends(require_session)):
    return _selection_payload(session)


@router.post("/api/employees/selection/toggle", tags=["Employees"], summary="Check or uncheck one employee")
def toggle_selection(body: ToggleBody, session: ConsoleSession = Depends(require_session)):
    session.screen(_SCREEN).selection.toggle(body.employeeId, body.checked)
    return _selection_payload(session)


@router.post("/api/employees/selection/all", tags=["Employees"], summary="Check or uncheck the visible page")
def select_all(body: SelectAllBody, session: ConsoleSession = Depends(require_session)):
    page, state = render_screen(_SCREEN, session)
    state.selection.select_all(body.checked, visible_ids(page, _SCREEN))
    return state.selection.summary(visible_ids(page, _SCREEN))


@router.delete("/api/employees/selection", tags=["Employees"], summary="Clear selection",
               description="Called when the assign popup is closed or cancelled.")
def clear_selection(session: ConsoleSession = Depends(require_session)):
    session.screen(_SCREEN).selection.clear()
    return {"ok": True}


# ── Leave-type assignment ─────────────────────────────────────

class AssignBody(BaseModel):
    leaveTypeIds: List[int] = []


@router.get("/api/employees/leave-types", tags=["Employees"], summary="Leave types offered for assignment",
            description="Leave types of the given year period (defaults to the current year).")
def get_assignable_leave_types(
    year: Optional[int] = Query(None),
    session: ConsoleSession = Depends(require_session),
):
    year = year or date.today().year
    return [lt for lt in list_records('leave-types', session) if lt.get('yearPeriod') == year]


@router.post("/api/employees/assign-leave-types", tags=["Employees"], summary="Assign leave types to the selection")
def assign_leave_types(body: AssignBody, session: ConsoleSession = Depends(require_session)):
    selection = session.screen(_SCREEN).selection
    if len(selection) == 0:
        raise HTTPException(status_code=400, detail="Please select at least one employee")
    if not body.leaveTypeIds:
        raise HTTPException(status_code=400, detail="Please select at least one leave type")
    assignments = [{'employeeId': emp_id, 'leaveTypeIds': body.leaveTypeIds} for emp_id in selection.ids]
    try:
        get_source().assign_leave_types(assignments, session)
    except RecordSourceError as e:
        _logger.error("Leave type assignment failed employees=%s error=%s", selection.ids, e)
        raise HTTPException(status_code=502, detail="Failed to assign leave types")
    selection.clear()
    _after_mutation(session, 'employees')
    return {"ok": True, "assigned": len(assignments)}


# ── CRUD ──────────────────────────────────────────────────────

@router.get("/api/employees/{emp_id}", tags=["Employees"], summary="Get employee by ID")
def get_employee(emp_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('employees', emp_id, session)


@router.post("/api/employees", tags=["Employees"], summary="Create employee",
             description="Multipart: `employeeDetails` (JSON), optional `photoUrl` image and `cvUrl` PDF.")
def create_employee(
    employeeDetails: str = Form(...),
    photoUrl: Optional[UploadFile] = File(None),
    cvUrl: Optional[UploadFile] = File(None),
    session: ConsoleSession = Depends(require_session),
):
    data = _parse_details(employeeDetails)
    try:
        validate_employee(data)
        files = _attachments(photoUrl, cvUrl)
    except ValidationError as e:
        raise _bad_request(e)
    payload = {**data, 'photoUrl': None, 'createdBy': session.user_id}
    record = create_record('employees', payload, session, files=files or None)
    return {"ok": True, "record": record}


@router.put("/api/employees/{emp_id}", tags=["Employees"], summary="Update employee")
def update_employee(
    emp_id: int,
    employeeDetails: str = Form(...),
    photoUrl: Optional[UploadFile] = File(None),
    cvUrl: Optional[UploadFile] = File(None),
    session: ConsoleSession = Depends(require_session),
):
    data = _parse_details(employeeDetails)
    try:
        validate_employee(data, check_basic_salary=False)
        files = _attachments(photoUrl, cvUrl)
    except ValidationError as e:
        raise _bad_request(e)
    payload = {**data, 'updatedBy': session.user_id}
    record = update_record('employees', emp_id, payload, session, files=files or None)
    return {"ok": True, "record": record}


@router.delete("/api/employees/{emp_id}", tags=["Employees"], summary="Delete employee",
               description="Also drops the employee from the current selection.")
def delete_employee(emp_id: int, session: ConsoleSession = Depends(require_session)):
    result = delete_record('employees', emp_id, session)
    session.screen(_SCREEN).selection.discard(emp_id)
    return {"ok": True, **result}
