"""
Bulk employee import from an Excel workbook.

The operator downloads an empty template, fills one employee per row and
uploads it back. Rows are turned into Create-Employee payloads and sent to
the Record Source one at a time, each request finishing before the next
one starts.
"""
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .session import ConsoleSession
from .source import RecordSource, RecordSourceError

_logger = logging.getLogger('hrconsole.import')

TEMPLATE_FILENAME = 'create-employees-template.xlsx'
TEMPLATE_SHEET = 'Employee Template'
XLSX_MIME = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

TEMPLATE_COLUMNS: Tuple[str, ...] = (
    'FullName', 'Email', 'OfficialPhone', 'PersonalPhone', 'PresentAddress',
    'PermanentAddress', 'EmergencyContactName', 'EmergencyContactPhone',
    'DOB', 'DOJ', 'Gender', 'BloodGroup', 'BasicSalary', 'GrossSalary',
    'EmpCode', 'DepartmentId', 'DesignationId', 'EmployeeTypeId',
)
DATE_COLUMNS = ('DOB', 'DOJ')

# column -> payload field
_REQUIRED_TEXT = {
    'FullName': 'fullName',
    'Email': 'email',
    'OfficialPhone': 'officialPhone',
    'PresentAddress': 'presentAddress',
    'DOB': 'dob',
    'EmpCode': 'empCode',
}
_OPTIONAL_TEXT = {
    'PersonalPhone': 'personalPhone',
    'PermanentAddress': 'permanentAddress',
    'EmergencyContactName': 'emergencyContactName',
    'EmergencyContactPhone': 'emergencyContactPhone',
    'BloodGroup': 'bloodGroup',
}
_NUMERIC = {
    'BasicSalary': 'basicSalary',
    'GrossSalary': 'grossSalary',
    'DepartmentId': 'departmentId',
    'DesignationId': 'designationId',
    'EmployeeTypeId': 'employeeTypeId',
}

GENERIC_FAILURE = 'Failed to import employees. Please check the data and try again.'


# ── Template ───────────────────────────────────────────────────

def build_template() -> bytes:
    """Single-sheet workbook holding only the header row."""
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = TEMPLATE_SHEET
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(fill_type="solid", fgColor="1E293B")
    for col, name in enumerate(TEMPLATE_COLUMNS, start=1):
        cell = ws.cell(1, col, name)
        cell.font = header_font
        cell.fill = header_fill
        ws.column_dimensions[get_column_letter(col)].width = max(12, len(name) + 4)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


# ── Reading ────────────────────────────────────────────────────

def _date_text(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def read_rows(data: bytes) -> List[Dict[str, Any]]:
    """Parse the first sheet into row mappings keyed by the header row.

    DOB/DOJ cells holding real dates come back as ``YYYY-MM-DD`` strings.
    Rows with no value at all are skipped.
    """
    wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        columns = [str(h).strip() if h is not None else None for h in header]
        result = []
        for values in rows:
            row = {}
            for col, value in zip(columns, values):
                if col is None:
                    continue
                if col in DATE_COLUMNS:
                    value = _date_text(value)
                row[col] = value
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in row.values()):
                continue
            result.append(row)
        return result
    finally:
        wb.close()


# ── Payloads ───────────────────────────────────────────────────

def _text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _number(value: Any) -> float:
    text = _text(value)
    if not text:
        return 0
    try:
        number = float(text)
    except ValueError:
        return 0
    return int(number) if number.is_integer() else number


def build_payload(row: Dict[str, Any], created_by: int = 0, today: Optional[date] = None) -> dict:
    today = today or date.today()
    payload: Dict[str, Any] = {}
    for column, key in _REQUIRED_TEXT.items():
        payload[key] = _text(row.get(column))
    for column, key in _OPTIONAL_TEXT.items():
        payload[key] = _text(row.get(column)) or None
    for column, key in _NUMERIC.items():
        payload[key] = _number(row.get(column))
    payload['doj'] = _text(row.get('DOJ')) or today.isoformat()
    payload['gender'] = _text(row.get('Gender')) or 'Male'
    payload['photoUrl'] = None
    payload['isActive'] = 1
    payload['createdBy'] = created_by
    return payload


# ── Import ─────────────────────────────────────────────────────

@dataclass
class ImportResult:
    succeeded: List[Tuple[int, Any]] = field(default_factory=list)   # (row number, new id)
    failed: List[Tuple[int, str]] = field(default_factory=list)      # (row number, reason)
    attempted: int = 0
    aborted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            'ok': self.ok,
            'imported': len(self.succeeded),
            'attempted': self.attempted,
            'aborted': self.aborted,
            'succeeded': [{'row': r, 'id': i} for r, i in self.succeeded],
            'failed': [{'row': r, 'reason': reason} for r, reason in self.failed],
        }


def import_employees(
    rows: List[Dict[str, Any]],
    source: RecordSource,
    session: ConsoleSession,
    created_by: Optional[int] = None,
    today: Optional[date] = None,
    stop_on_error: bool = True,
) -> ImportResult:
    """Create one employee per row, strictly in order.

    With ``stop_on_error`` (the default) the first rejected row ends the
    import: earlier rows stay committed, later rows are never sent. With
    ``stop_on_error=False`` every row is attempted and each outcome is
    recorded. Row numbers are spreadsheet rows (the header is row 1).
    """
    if created_by is None:
        created_by = session.user_id
    result = ImportResult()
    for row_no, row in enumerate(rows, start=2):
        payload = build_payload(row, created_by=created_by, today=today)
        result.attempted += 1
        try:
            record = source.create('employees', payload, session)
        except RecordSourceError as e:
            _logger.error("Employee import failed at row %d (%s): %s",
                          row_no, payload.get('fullName') or '?', e)
            result.failed.append((row_no, str(e)))
            if stop_on_error:
                result.aborted = True
                break
            continue
        result.succeeded.append((row_no, (record or {}).get('employeeId')))
    _logger.info("Employee import finished: %d ok, %d failed, aborted=%s",
                 len(result.succeeded), len(result.failed), result.aborted)
    return result
