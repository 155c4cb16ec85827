"""Attendance router: daily attendance entry for many employees at once."""
from datetime import date
from fastapi import APIRouter, HTTPException, Query, Depends
from pydantic import BaseModel
from typing import Optional, List
from hrlib.attendance import attendance_payload, default_rows, find_employee, office_hours
from hrlib.session import ConsoleSession
from hrlib.source import RecordSourceError
from hrlib.validation import ValidationError, parse_date
from ..dependencies import (
    require_session, get_source, _bad_request, _logger, _after_mutation,
    list_records, fetch_record, update_record, delete_record,
)

router = APIRouter()


class AttendanceRow(BaseModel):
    employeeId: int
    inTime: str
    outTime: str
    isChecked: bool = True


class AttendanceBatch(BaseModel):
    attendanceDate: str
    rows: List[AttendanceRow] = []


class AttendanceUpdate(BaseModel):
    attendanceDate: str
    inTime: str
    outTime: str


def _timings_by_id(session: ConsoleSession) -> dict:
    return {t.get('officeTimingId'): t for t in list_records('office-timings', session)}


def _check_date(value: str) -> str:
    try:
        return parse_date(value, 'Attendance date').isoformat()
    except ValidationError as e:
        raise _bad_request(e)


@router.get("/api/attendances", tags=["Attendance"], summary="List attendance records")
def get_attendances(session: ConsoleSession = Depends(require_session)):
    return list_records('attendances', session)


@router.get("/api/attendances/form", tags=["Attendance"], summary="Pre-filled attendance form",
            description="One checked row per active employee with in/out set to the office hours.")
def get_attendance_form(
    date_: Optional[str] = Query(None, alias="date"),
    session: ConsoleSession = Depends(require_session),
):
    attendance_date = _check_date(date_) if date_ else date.today().isoformat()
    employees = list_records('employees', session)
    timings = list_records('office-timings', session)
    return {"attendanceDate": attendance_date, "rows": default_rows(employees, timings)}


@router.get("/api/attendances/{attendance_id}", tags=["Attendance"], summary="Get attendance record by ID")
def get_attendance(attendance_id: int, session: ConsoleSession = Depends(require_session)):
    return fetch_record('attendances', attendance_id, session)


@router.post("/api/attendances", tags=["Attendance"], summary="Save attendance for checked employees",
             description="Late-in and early-out minutes are derived from each employee's office timing.")
def create_attendances(body: AttendanceBatch, session: ConsoleSession = Depends(require_session)):
    attendance_date = _check_date(body.attendanceDate)
    checked = [r for r in body.rows if r.isChecked]
    if not checked:
        raise HTTPException(status_code=400, detail="Please select at least one employee")
    employees = list_records('employees', session)
    timings = _timings_by_id(session)
    payloads = []
    for row in checked:
        emp = find_employee(employees, row.employeeId)
        if emp is None:
            raise HTTPException(status_code=400, detail=f"Unknown employee {row.employeeId}")
        start, end = office_hours(emp, timings)
        try:
            payloads.append(attendance_payload(row.model_dump(), attendance_date, start, end, session.user_id))
        except ValueError:
            raise HTTPException(status_code=400, detail="Please enter valid in and out times")
    try:
        records = get_source().create_many('attendances', payloads, session)
    except RecordSourceError as e:
        _logger.error("Attendance save failed date=%s rows=%d error=%s", attendance_date, len(payloads), e)
        raise HTTPException(status_code=502, detail="Failed to save attendance")
    _after_mutation(session, 'attendances')
    return {"ok": True, "saved": len(records), "records": records}


@router.put("/api/attendances/{attendance_id}", tags=["Attendance"], summary="Update attendance record")
def update_attendance(attendance_id: int, body: AttendanceUpdate, session: ConsoleSession = Depends(require_session)):
    attendance_date = _check_date(body.attendanceDate)
    current = fetch_record('attendances', attendance_id, session)
    emp = find_employee(list_records('employees', session), current.get('employeeId'))
    start, end = office_hours(emp or {}, _timings_by_id(session))
    row = {'employeeId': current.get('employeeId'), 'inTime': body.inTime, 'outTime': body.outTime}
    try:
        payload = attendance_payload(row, attendance_date, start, end, session.user_id, created=False)
    except ValueError:
        raise HTTPException(status_code=400, detail="Please enter valid in and out times")
    record = update_record('attendances', attendance_id, payload, session)
    return {"ok": True, "record": record}


@router.delete("/api/attendances/{attendance_id}", tags=["Attendance"], summary="Delete attendance record")
def delete_attendance(attendance_id: int, session: ConsoleSession = Depends(require_session)):
    return {"ok": True, **delete_record('attendances', attendance_id, session)}
