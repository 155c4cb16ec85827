"""Table screens of the console and the lookups they resolve through."""
from typing import Dict, List, Optional

from .listview import Lookup, Record, ViewSpec

FLAT_PAGE_SIZE = 10
GROUPED_PAGE_SIZE = 5

SCREENS: Dict[str, ViewSpec] = {
    s.name: s for s in (
        ViewSpec(
            name='departments', entity='departments', id_field='departmentId',
            search_fields=('departmentName',), default_sort='departmentName',
            sortable=('departmentName',),
        ),
        ViewSpec(
            name='designations', entity='designations', id_field='designationId',
            search_fields=('designationName',), default_sort='designationName',
            sortable=('designationName',),
        ),
        ViewSpec(
            name='employee-types', entity='employee-types', id_field='employeeTypeId',
            search_fields=('employeeTypeName',), default_sort='employeeTypeName',
            sortable=('employeeTypeName',),
        ),
        ViewSpec(
            name='holidays', entity='holidays', id_field='holidayId',
            search_fields=('holidayName',), default_sort='holidayName',
            sortable=('holidayName', 'startDate', 'endDate', 'noOfDays'),
        ),
        ViewSpec(
            name='leave-types', entity='leave-types', id_field='leaveTypeId',
            search_fields=('leaveTypeName',), default_sort='leaveTypeName',
            page_size=GROUPED_PAGE_SIZE, group_field='yearPeriod', group_numeric=True,
            sortable=('leaveTypeName', 'totalLeaves'),
        ),
        ViewSpec(
            name='office-timings', entity='office-timings', id_field='officeTimingId',
            search_fields=('startTime', 'endTime'), default_sort='startTime',
            sortable=('startTime', 'endTime'),
        ),
        ViewSpec(
            name='employees', entity='employees', id_field='employeeId',
            search_fields=('fullName', 'email', 'empCode'), default_sort='fullName',
            sortable=('empCode', 'fullName', 'email', 'departmentId', 'designationId'),
        ),
        ViewSpec(
            name='attendances', entity='attendances', id_field='employeeAttendanceId',
            search_fields=('employeeName',), default_sort='employeeName',
            page_size=GROUPED_PAGE_SIZE, group_field='attendanceDate',
            sortable=('employeeName', 'inTime', 'outTime'),
        ),
    )
}

# Auxiliary collections each screen needs besides its own entity.
SCREEN_LOOKUP_SOURCES: Dict[str, List[str]] = {
    'employees': ['departments', 'designations'],
}


def get_screen(name: str) -> Optional[ViewSpec]:
    return SCREENS.get(name)


def name_lookup(records: List[Record], id_field: str, name_field: str,
                foreign_key: Optional[str] = None) -> Lookup:
    """Build a lookup resolving ``foreign_key`` on a record to a name.

    Unknown or missing ids resolve to ``'-'``.
    """
    foreign_key = foreign_key or id_field
    names = {r.get(id_field): r.get(name_field) for r in records}

    def resolve(record: Record) -> str:
        return names.get(record.get(foreign_key)) or '-'

    return resolve


def build_lookups(screen: str, aux: Dict[str, List[Record]]) -> Dict[str, Lookup]:
    """Lookups keyed by the column they stand in for."""
    if screen == 'employees':
        return {
            'departmentId': name_lookup(aux.get('departments') or [], 'departmentId', 'departmentName'),
            'designationId': name_lookup(aux.get('designations') or [], 'designationId', 'designationName'),
        }
    return {}
