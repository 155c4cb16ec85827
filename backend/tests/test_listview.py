"""Unit tests for the list pipeline (hrlib.listview), without the HTTP layer."""
import itertools
from datetime import date

import pytest

from hrlib.listview import (
    QueryState, SortDirection, ViewSpec, build_view, compare_values,
    filter_records, group_records, sort_records,
)
from hrlib.screens import SCREENS, build_lookups


DEPARTMENTS = [
    {'departmentId': 1, 'departmentName': 'Engineering'},
    {'departmentId': 2, 'departmentName': 'Finance'},
]
DESIGNATIONS = [{'designationId': 1, 'designationName': 'Manager'}]

EMPLOYEES = [
    {'employeeId': 1, 'fullName': 'alice Smith', 'email': 'alice@corp.io', 'empCode': 'E003', 'departmentId': 2, 'designationId': 1},
    {'employeeId': 2, 'fullName': 'Bob Jones', 'email': 'bob@corp.io', 'empCode': 'E001', 'departmentId': 1, 'designationId': None},
    {'employeeId': 3, 'fullName': 'Carol White', 'email': None, 'empCode': 'E002', 'departmentId': 99, 'designationId': 1},
]


def _lookups():
    return build_lookups('employees', {'departments': DEPARTMENTS, 'designations': DESIGNATIONS})


class TestFilterRecords:
    def test_empty_search_keeps_everything(self):
        assert filter_records(EMPLOYEES, '', ('fullName',)) == EMPLOYEES

    def test_match_is_case_insensitive(self):
        res = filter_records(EMPLOYEES, 'ALICE', ('fullName', 'email'))
        assert [r['employeeId'] for r in res] == [1]

    def test_result_is_subsequence_in_input_order(self):
        res = filter_records(EMPLOYEES, 'o', ('fullName', 'email'))
        ids = [r['employeeId'] for r in res]
        assert ids == sorted(ids)
        assert all(r in EMPLOYEES for r in res)

    def test_missing_values_are_treated_as_empty(self):
        # Carol has email=None and must neither crash nor match 'none'
        assert filter_records(EMPLOYEES, 'none', ('email',)) == []

    def test_lookup_values_are_searchable(self):
        res = filter_records(EMPLOYEES, 'finance', ('fullName',), _lookups())
        assert [r['employeeId'] for r in res] == [1]

    def test_unresolved_lookup_renders_dash(self):
        lookups = _lookups()
        carol = EMPLOYEES[2]
        assert lookups['departmentId'](carol) == '-'
        assert lookups['designationId'](EMPLOYEES[1]) == '-'

    def test_no_match_returns_empty(self):
        assert filter_records(EMPLOYEES, 'zzz', ('fullName', 'email', 'empCode')) == []


class TestGroupRecords:
    def test_partition_is_exhaustive_and_disjoint(self):
        records = [{'id': i, 'd': f'2024-01-0{i % 3 + 1}'} for i in range(9)]
        groups = group_records(records, 'd')
        keys = [k for k, _ in groups]
        assert len(keys) == len(set(keys))
        members = [r['id'] for _, rs in groups for r in rs]
        assert sorted(members) == list(range(9))

    def test_date_keys_most_recent_first(self):
        records = [{'d': '2024-01-01'}, {'d': '2024-03-01'}, {'d': '2023-12-31'}]
        assert [k for k, _ in group_records(records, 'd')] == ['2024-03-01', '2024-01-01', '2023-12-31']

    def test_year_keys_numeric_descending(self):
        records = [{'y': 2024}, {'y': 2025}, {'y': '2023'}]
        assert [k for k, _ in group_records(records, 'y', numeric=True)] == [2025, 2024, 2023]

    def test_missing_key_uses_default(self):
        records = [{'y': 2024}, {'y': None}]
        groups = dict(group_records(records, 'y', numeric=True, default=2030))
        assert set(groups) == {2030, 2024}


class TestSortRecords:
    def test_ascending_by_string_ignores_case(self):
        res = sort_records(EMPLOYEES, 'fullName', SortDirection.ASC)
        assert [r['fullName'] for r in res] == ['alice Smith', 'Bob Jones', 'Carol White']

    def test_descending_reverses(self):
        res = sort_records(EMPLOYEES, 'empCode', SortDirection.DESC)
        assert [r['empCode'] for r in res] == ['E003', 'E002', 'E001']

    def test_does_not_mutate_input(self):
        before = list(EMPLOYEES)
        sort_records(EMPLOYEES, 'empCode', SortDirection.DESC)
        assert EMPLOYEES == before

    def test_idempotent_for_distinct_values(self):
        once = sort_records(EMPLOYEES, 'empCode')
        twice = sort_records(once, 'empCode')
        assert once == twice

    def test_sort_by_lookup_uses_resolved_name(self):
        res = sort_records(EMPLOYEES, 'departmentId', SortDirection.ASC, _lookups())
        # '-' < 'Engineering' < 'Finance'
        assert [r['employeeId'] for r in res] == [3, 2, 1]

    def test_missing_values_sort_first_ascending(self):
        res = sort_records(EMPLOYEES, 'email')
        assert res[0]['employeeId'] == 3

    def test_numeric_values(self):
        records = [{'n': 3}, {'n': 1}, {'n': 2}]
        assert [r['n'] for r in sort_records(records, 'n')] == [1, 2, 3]


class TestComparatorAsymmetry:
    """The non-string comparator answers -1 for equal values in both orders."""

    def test_equal_numbers_compare_less_both_ways(self):
        assert compare_values(5, 5) == -1
        assert compare_values(5, 5) == compare_values(5, 5)

    def test_strings_are_symmetric(self):
        assert compare_values('a', 'a') == 0
        assert compare_values('a', 'B') == -compare_values('B', 'a')

    def test_equal_numeric_ties_flip_on_each_pass(self):
        records = [{'id': 1, 'n': 5}, {'id': 2, 'n': 5}]
        once = sort_records(records, 'n')
        twice = sort_records(once, 'n')
        assert [r['id'] for r in once] == [2, 1]
        assert [r['id'] for r in twice] == [1, 2]

    def test_output_is_still_ordered_by_value(self):
        for perm in itertools.permutations([{'n': 2}, {'n': 1}, {'n': 2}, {'n': 3}]):
            assert [r['n'] for r in sort_records(list(perm), 'n')] == [1, 2, 2, 3]


class TestQueryState:
    def test_new_column_starts_ascending_then_flips(self):
        state = QueryState(sort_column='fullName')
        state.toggle_sort('email')
        assert (state.sort_column, state.sort_direction) == ('email', SortDirection.ASC)
        state.toggle_sort('email')
        assert state.sort_direction is SortDirection.DESC

    def test_switching_column_resets_direction(self):
        state = QueryState(sort_column='fullName', sort_direction=SortDirection.DESC)
        state.toggle_sort('email')
        assert state.sort_direction is SortDirection.ASC

    def test_search_change_returns_to_first_page(self):
        state = QueryState(sort_column='fullName', current_page=3)
        state.set_search('bob')
        assert state.current_page == 1

    def test_reset_keeps_sort_column(self):
        state = QueryState(sort_column='email', search_term='x', sort_direction=SortDirection.DESC, current_page=2)
        state.reset()
        assert state.to_dict() == {
            'search_term': '', 'sort_column': 'email', 'sort_direction': 'asc', 'current_page': 1,
        }


class TestBuildView:
    def test_unloaded_without_records(self):
        spec = SCREENS['departments']
        page = build_view(None, QueryState(sort_column=spec.default_sort), spec)
        assert page.loaded is False
        assert page.items == []
        assert page.page_count == 0

    def test_empty_collection_gives_empty_state(self):
        spec = SCREENS['departments']
        page = build_view([], QueryState(sort_column=spec.default_sort), spec)
        assert page.loaded is True
        assert page.is_empty
        assert page.page == 1
        assert not page.has_previous and not page.has_next

    def test_current_page_is_clamped(self):
        spec = SCREENS['departments']
        records = [{'departmentId': i, 'departmentName': f'D{i:02d}'} for i in range(12)]
        state = QueryState(sort_column=spec.default_sort, current_page=9)
        page = build_view(records, state, spec)
        assert page.page == 2 == state.current_page
        assert len(page.items) == 2

    def test_grouped_screen_pages_over_groups(self):
        spec = SCREENS['attendances']
        records = [
            {'employeeAttendanceId': i, 'employeeName': f'N{i}', 'attendanceDate': f'2024-01-{d:02d}'}
            for i, d in enumerate(range(1, 8))
        ]
        page = build_view(records, QueryState(sort_column=spec.default_sort), spec)
        assert page.grouped
        assert page.page_count == 2
        assert [key for key, _ in page.items] == [
            '2024-01-07', '2024-01-06', '2024-01-05', '2024-01-04', '2024-01-03',
        ]

    def test_members_are_sorted_inside_each_group(self):
        spec = SCREENS['attendances']
        rows = [('2024-01-02', 'Mia'), ('2024-01-01', 'Kim'), ('2024-01-02', 'Ann'),
                ('2024-01-01', 'Bea'), ('2024-01-02', 'Zed')]
        records = [
            {'employeeAttendanceId': i, 'employeeName': name, 'attendanceDate': day}
            for i, (day, name) in enumerate(rows)
        ]
        state = QueryState(sort_column=spec.default_sort)

        def names(page):
            return [(key, [r['employeeName'] for r in members]) for key, members in page.items]

        assert names(build_view(records, state, spec)) == [
            ('2024-01-02', ['Ann', 'Mia', 'Zed']),
            ('2024-01-01', ['Bea', 'Kim']),
        ]
        state.toggle_sort('employeeName')
        assert state.sort_direction is SortDirection.DESC
        assert names(build_view(records, state, spec)) == [
            ('2024-01-02', ['Zed', 'Mia', 'Ann']),
            ('2024-01-01', ['Kim', 'Bea']),
        ]

    def test_leave_types_without_year_land_in_current_year(self):
        spec = SCREENS['leave-types']
        records = [{'leaveTypeId': 1, 'leaveTypeName': 'Sick'}, {'leaveTypeId': 2, 'leaveTypeName': 'Annual', 'yearPeriod': 2001}]
        page = build_view(records, QueryState(sort_column=spec.default_sort), spec)
        assert [key for key, _ in page.items] == [date.today().year, 2001]

    def test_pipeline_filters_then_sorts(self):
        spec = SCREENS['employees']
        state = QueryState(sort_column='empCode')
        state.set_search('corp.io')
        page = build_view(EMPLOYEES, state, spec, _lookups())
        assert [r['empCode'] for r in page.items] == ['E001', 'E003']

    @pytest.mark.parametrize('name', sorted(SCREENS))
    def test_every_screen_renders(self, name):
        spec = SCREENS[name]
        page = build_view([], QueryState(sort_column=spec.default_sort), spec)
        assert page.to_dict()['grouped'] == spec.grouped

    def test_custom_spec(self):
        spec = ViewSpec(name='x', entity='departments', id_field='id', search_fields=('n',), default_sort='n', page_size=2)
        page = build_view([{'id': 1, 'n': 'b'}, {'id': 2, 'n': 'a'}, {'id': 3, 'n': 'c'}], QueryState(sort_column='n'), spec)
        assert [r['n'] for r in page.items] == ['a', 'b']
        assert page.strip == [1, 2]
