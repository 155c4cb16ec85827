"""
Form validation done before anything is sent to the Record Source.

Each check raises ``ValidationError`` carrying the inline message shown to
the operator; the first failing rule wins.
"""
from datetime import date, datetime
from typing import Any, Iterable, Optional

DATE_FORMAT = '%Y-%m-%d'

BLOOD_GROUPS = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')
GENDERS = ('Male', 'Female')

PDF_MIME = 'application/pdf'


class ValidationError(ValueError):
    pass


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _positive(value: Any) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def parse_date(value: str, field: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be in the format YYYY-MM-DD") from None


def require_name(value: Optional[str], label: str) -> str:
    if _blank(value):
        raise ValidationError(f"Please enter {label} name")
    return value.strip()


# ── Employees ──────────────────────────────────────────────────

_EMPLOYEE_TEXT_RULES = (
    ('fullName', 'Please enter full name'),
    ('email', 'Please enter email'),
    ('officialPhone', 'Please enter official phone'),
    ('presentAddress', 'Please enter present address'),
    ('dob', 'Please enter date of birth'),
    ('doj', 'Please enter date of joining'),
    ('empCode', 'Please enter employee code'),
)

_EMPLOYEE_REFERENCE_RULES = (
    ('departmentId', 'Please select department'),
    ('designationId', 'Please select designation'),
    ('employeeTypeId', 'Please select employee type'),
)


def validate_employee(data: dict, check_basic_salary: bool = True) -> None:
    """Create/edit employee form rules.

    The edit form does not re-check the basic salary, hence the flag.
    """
    for field, message in _EMPLOYEE_TEXT_RULES:
        if _blank(data.get(field)):
            raise ValidationError(message)
    if check_basic_salary and not _positive(data.get('basicSalary')):
        raise ValidationError('Please enter valid basic salary')
    if not _positive(data.get('grossSalary')):
        raise ValidationError('Please enter valid gross salary')
    for field, message in _EMPLOYEE_REFERENCE_RULES:
        if not _positive(data.get(field)):
            raise ValidationError(message)
    if data.get('gender') not in GENDERS:
        raise ValidationError('Please select gender')
    if data.get('bloodGroup') and data['bloodGroup'] not in BLOOD_GROUPS:
        raise ValidationError('Please select a valid blood group')


def check_cv_upload(content_type: Optional[str]) -> None:
    if (content_type or '').lower() != PDF_MIME:
        raise ValidationError('Please upload a PDF file for CV')


def check_photo_upload(content_type: Optional[str]) -> None:
    if not (content_type or '').lower().startswith('image/'):
        raise ValidationError('Please upload an image file for photo')


# ── Holidays ───────────────────────────────────────────────────

def holiday_days(start: str, end: str) -> int:
    """Inclusive number of days between two ISO dates."""
    return (parse_date(end, 'endDate') - parse_date(start, 'startDate')).days + 1


def validate_holiday(data: dict) -> dict:
    """Validate a holiday form and fill ``noOfDays`` from its date range."""
    require_name(data.get('holidayName'), 'holiday')
    if _blank(data.get('startDate')) or _blank(data.get('endDate')):
        raise ValidationError('Please select start and end date')
    days = holiday_days(data['startDate'], data['endDate'])
    if days <= 0:
        raise ValidationError('End date must not be before start date')
    return {**data, 'noOfDays': days}


# ── Leave types ────────────────────────────────────────────────

def validate_leave_type(data: dict) -> None:
    require_name(data.get('leaveTypeName'), 'leave type')
    total = data.get('totalLeaves')
    if total is None or float(total) < 0:
        raise ValidationError('Please enter valid total leaves')
    if not data.get('yearPeriod'):
        raise ValidationError('Please select year period')


# ── Office timings ─────────────────────────────────────────────

def validate_office_timing(start_time: str, end_time: str, weekend_ids: Iterable[int]) -> None:
    if not list(weekend_ids):
        raise ValidationError('Please select at least one weekend day')
    for label, value in (('start', start_time), ('end', end_time)):
        try:
            datetime.strptime(value, '%H:%M')
        except (TypeError, ValueError):
            raise ValidationError(f"Please enter a valid {label} time (HH:MM)") from None
