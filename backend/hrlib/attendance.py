"""Attendance helpers: late/early minutes and default form rows."""
from typing import Dict, List, Optional

DEFAULT_START = '09:00'
DEFAULT_END = '17:00'


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(':')[:2]
    return int(hours) * 60 + int(minutes)


def late_in_minutes(in_time: str, office_start: str) -> int:
    return max(0, _minutes(in_time) - _minutes(office_start))


def early_out_minutes(out_time: str, office_end: str) -> int:
    return max(0, _minutes(office_end) - _minutes(out_time))


def office_hours(employee: dict, timings_by_id: Dict[int, dict]) -> tuple:
    timing = timings_by_id.get(employee.get('officeTimingId')) or {}
    return timing.get('startTime') or DEFAULT_START, timing.get('endTime') or DEFAULT_END


def default_rows(employees: List[dict], office_timings: List[dict]) -> List[dict]:
    """One pre-filled, checked row per active employee, on time."""
    timings_by_id = {t.get('officeTimingId'): t for t in office_timings}
    rows = []
    for emp in employees:
        if emp.get('isActive') != 1:
            continue
        start, end = office_hours(emp, timings_by_id)
        rows.append({
            'employeeId': emp.get('employeeId'),
            'employeeName': emp.get('fullName') or '',
            'inTime': start,
            'outTime': end,
            'lateInMinutes': 0,
            'earlyOutMinutes': 0,
            'officeStartTime': start,
            'officeEndTime': end,
            'isChecked': True,
        })
    return rows


def attendance_payload(row: dict, attendance_date: str, office_start: str, office_end: str,
                       user_id: int, created: bool = True) -> dict:
    payload = {
        'employeeId': row['employeeId'],
        'attendanceDate': attendance_date,
        'inTime': row['inTime'],
        'outTime': row['outTime'],
        'lateInMinutes': late_in_minutes(row['inTime'], office_start),
        'earlyOutMinutes': early_out_minutes(row['outTime'], office_end),
    }
    payload['createdBy' if created else 'updatedBy'] = user_id
    return payload


def find_employee(employees: List[dict], employee_id: int) -> Optional[dict]:
    for emp in employees:
        if emp.get('employeeId') == employee_id:
            return emp
    return None
