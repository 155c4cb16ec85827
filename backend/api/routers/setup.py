"""Setup router: departments, designations, employee types, holidays, leave types, office timings, weekends."""
from datetime import date
from fastapi import APIRouter, HTTPException, Query, Depends
from pydantic import BaseModel
from typing import Optional, List
from hrlib.session import ConsoleSession
from hrlib.source import RecordSourceError
from hrlib.validation import (
    ValidationError, require_name, validate_holiday, validate_leave_type, validate_office_timing,
)
from ..dependencies import (
    require_session, get_source, _bad_request, _mutation_failed, _after_mutation,
    list_records, fetch_record, create_record, update_record, delete_record,
)

router = APIRouter()


# ── Departments ───────────────────────────────────────────────

class DepartmentBody(BaseModel):
    departmentName: str


@router.get("/api/departments", tags=["Setup"], summary="List departments")
def get_departments(session: ConsoleSession = Depends(require_session)):
    return list_records('departments', session)


@router.get("/api/departments/{department_id}", tags=["Setup"], summary="Get department by ID")
def get_department(department_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('departments', department_id, session)


@router.post("/api/departments", tags=["Setup"], summary="Create department")
def create_department(body: DepartmentBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.departmentName, 'department')
    except ValidationError as e:
        raise _bad_request(e)
    record = create_record('departments', {'departmentName': name, 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.put("/api/departments/{department_id}", tags=["Setup"], summary="Update department")
def update_department(department_id: int, body: DepartmentBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.departmentName, 'department')
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('departments', department_id,
                           {'departmentName': name, 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/departments/{department_id}", tags=["Setup"], summary="Delete department")
def delete_department(department_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('departments', department_id, session)}


# ── Designations ──────────────────────────────────────────────

class DesignationBody(BaseModel):
    designationName: str


@router.get("/api/designations", tags=["Setup"], summary="List designations")
def get_designations(session: ConsoleSession = Depends(require_session)):
    return list_records('designations', session)


@router.get("/api/designations/{designation_id}", tags=["Setup"], summary="Get designation by ID")
def get_designation(designation_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('designations', designation_id, session)


@router.post("/api/designations", tags=["Setup"], summary="Create designation")
def create_designation(body: DesignationBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.designationName, 'designation')
    except ValidationError as e:
        raise _bad_request(e)
    record = create_record('designations', {'designationName': name, 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.put("/api/designations/{designation_id}", tags=["Setup"], summary="Update designation")
def update_designation(designation_id: int, body: DesignationBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.designationName, 'designation')
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('designations', designation_id,
                           {'designationName': name, 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/designations/{designation_id}", tags=["Setup"], summary="Delete designation")
def delete_designation(designation_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('designations', designation_id, session)}


# ── Employee types ────────────────────────────────────────────

class EmployeeTypeBody(BaseModel):
    employeeTypeName: str


@router.get("/api/employee-types", tags=["Setup"], summary="List employee types")
def get_employee_types(session: ConsoleSession = Depends(require_session)):
    return list_records('employee-types', session)


@router.get("/api/employee-types/{type_id}", tags=["Setup"], summary="Get employee type by ID")
def get_employee_type(type_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('employee-types', type_id, session)


@router.post("/api/employee-types", tags=["Setup"], summary="Create employee type")
def create_employee_type(body: EmployeeTypeBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.employeeTypeName, 'employee type')
    except ValidationError as e:
        raise _bad_request(e)
    record = create_record('employee-types', {'employeeTypeName': name, 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.put("/api/employee-types/{type_id}", tags=["Setup"], summary="Update employee type")
def update_employee_type(type_id: int, body: EmployeeTypeBody, session: ConsoleSession = Depends(require_session)):
    try:
        name = require_name(body.employeeTypeName, 'employee type')
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('employee-types', type_id,
                           {'employeeTypeName': name, 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/employee-types/{type_id}", tags=["Setup"], summary="Delete employee type")
def delete_employee_type(type_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('employee-types', type_id, session)}


# ── Holidays ──────────────────────────────────────────────────

class HolidayBody(BaseModel):
    holidayName: str
    startDate: str
    endDate: str
    description: Optional[str] = None


@router.get("/api/holidays", tags=["Setup"], summary="List holidays")
def get_holidays(session: ConsoleSession = Depends(require_session)):
    return list_records('holidays', session)


@router.get("/api/holidays/{holiday_id}", tags=["Setup"], summary="Get holiday by ID")
def get_holiday(holiday_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('holidays', holiday_id, session)


@router.post("/api/holidays", tags=["Setup"], summary="Create holiday", description="noOfDays is computed from the inclusive date range.")
def create_holiday(body: HolidayBody, session: ConsoleSession = Depends(require_session)):
    try:
        data = validate_holiday(body.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    record = create_record('holidays', {**data, 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.put("/api/holidays/{holiday_id}", tags=["Setup"], summary="Update holiday")
def update_holiday(holiday_id: int, body: HolidayBody, session: ConsoleSession = Depends(require_session)):
    try:
        data = validate_holiday(body.model_dump())
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('holidays', holiday_id, {**data, 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/holidays/{holiday_id}", tags=["Setup"], summary="Delete holiday")
def delete_holiday(holiday_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('holidays', holiday_id, session)}


# ── Leave types ───────────────────────────────────────────────

class LeaveTypeBody(BaseModel):
    leaveTypeName: str
    totalLeaves: float
    yearPeriod: int


class LeaveTypeCopy(BaseModel):
    source_year: int
    target_year: int
    # Optional edits made in the copy dialog; defaults to the source year's list
    leave_types: Optional[List[LeaveTypeBody]] = None


@router.get("/api/leave-types", tags=["Setup"], summary="List leave types")
def get_leave_types(
    year: Optional[int] = Query(None, description="Only leave types of this year period"),
    session: ConsoleSession = Depends(require_session),
):
    records = list_records('leave-types', session)
    if year is not None:
        records = [r for r in records if r.get('yearPeriod') == year]
    return records


@router.get("/api/leave-types/{leave_type_id}", tags=["Setup"], summary="Get leave type by ID")
def get_leave_type(leave_type_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('leave-types', leave_type_id, session)


@router.post("/api/leave-types", tags=["Setup"], summary="Create leave type")
def create_leave_type(body: LeaveTypeBody, session: ConsoleSession = Depends(require_session)):
    data = body.model_dump()
    try:
        validate_leave_type(data)
    except ValidationError as e:
        raise _bad_request(e)
    data['leaveTypeName'] = data['leaveTypeName'].strip()
    record = create_record('leave-types', {**data, 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.post("/api/leave-types/copy", tags=["Setup"], summary="Copy leave types to another year",
             description="Bulk-creates the source year's leave types (or the edited list) for the target year.")
def copy_leave_types(body: LeaveTypeCopy, session: ConsoleSession = Depends(require_session)):
    if body.source_year == body.target_year:
        raise HTTPException(status_code=400, detail="Please select a different target year")
    if body.leave_types is not None:
        to_copy = [lt.model_dump() for lt in body.leave_types]
    else:
        to_copy = [r for r in list_records('leave-types', session) if r.get('yearPeriod') == body.source_year]
    if not to_copy:
        raise HTTPException(status_code=400, detail="No leave types to copy")
    payloads = [
        {
            'leaveTypeName': lt['leaveTypeName'],
            'totalLeaves': lt['totalLeaves'],
            'yearPeriod': body.target_year,
            'createdBy': session.user_id,
        }
        for lt in to_copy
    ]
    try:
        records = get_source().create_many('leave-types', payloads, session)
    except RecordSourceError as e:
        exc = _mutation_failed(e, 'copy', 'leave-types')
        exc.detail = "Failed to copy leave types"
        raise exc
    _after_mutation(session, 'leave-types')
    return {"ok": True, "copied": len(payloads), "records": records}


@router.put("/api/leave-types/{leave_type_id}", tags=["Setup"], summary="Update leave type")
def update_leave_type(leave_type_id: int, body: LeaveTypeBody, session: ConsoleSession = Depends(require_session)):
    data = body.model_dump()
    try:
        validate_leave_type(data)
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('leave-types', leave_type_id, {**data, 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/leave-types/{leave_type_id}", tags=["Setup"], summary="Delete leave type")
def delete_leave_type(leave_type_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('leave-types', leave_type_id, session)}


@router.get("/api/leave-types-years", tags=["Setup"], summary="Year options for leave types",
            description="Current year and the next five years.")
def get_leave_type_years():
    current = date.today().year
    return [current + i for i in range(6)]


# ── Office timings & weekends ─────────────────────────────────

class OfficeTimingBody(BaseModel):
    startTime: str
    endTime: str
    weekendIds: List[int] = []


@router.get("/api/weekends", tags=["Setup"], summary="List weekend days")
def get_weekends(session: ConsoleSession = Depends(require_session)):
    return list_records('weekends', session)


@router.get("/api/office-timings", tags=["Setup"], summary="List office timings")
def get_office_timings(session: ConsoleSession = Depends(require_session)):
    return list_records('office-timings', session)


@router.get("/api/office-timings/{timing_id}", tags=["Setup"], summary="Get office timing by ID")
def get_office_timing(timing_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('office-timings', timing_id, session)


@router.post("/api/office-timings", tags=["Setup"], summary="Create office timing")
def create_office_timing(body: OfficeTimingBody, session: ConsoleSession = Depends(require_session)):
    try:
        validate_office_timing(body.startTime, body.endTime, body.weekendIds)
    except ValidationError as e:
        raise _bad_request(e)
    record = create_record('office-timings', {**body.model_dump(), 'createdBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.put("/api/office-timings/{timing_id}", tags=["Setup"], summary="Update office timing")
def update_office_timing(timing_id: int, body: OfficeTimingBody, session: ConsoleSession = Depends(require_session)):
    try:
        validate_office_timing(body.startTime, body.endTime, body.weekendIds)
    except ValidationError as e:
        raise _bad_request(e)
    record = update_record('office-timings', timing_id, {**body.model_dump(), 'updatedBy': session.user_id}, session)
    return {"ok": True, "record": record}


@router.delete("/api/office-timings/{timing_id}", tags=["Setup"], summary="Delete office timing")
def delete_office_timing(timing_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('office-timings', timing_id, session)}
