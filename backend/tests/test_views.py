"""Tests for the list-view endpoints."""
from starlette.testclient import TestClient

from hrlib.session import ConsoleSession


class TestRenderView:
    def test_first_page(self, client: TestClient, employees):
        res = client.get('/api/views/employees')
        assert res.status_code == 200
        data = res.json()
        assert data['loaded'] is True
        assert data['page_count'] == 3
        assert data['total'] == 25
        assert [e['fullName'] for e in data['items']][:2] == ['Employee 01', 'Employee 02']
        assert data['has_next'] and not data['has_previous']
        assert data['selection']['count'] == 0

    def test_search_resets_page_and_filters(self, client: TestClient, employees):
        client.get('/api/views/employees', params={'page': 3})
        data = client.get('/api/views/employees', params={'search': 'EMPLOYEE2'}).json()
        assert data['page'] == 1
        assert data['total'] == 6
        assert data['query']['search_term'] == 'EMPLOYEE2'

    def test_search_by_department_name(self, client: TestClient, source, employees):
        from conftest import employee_payload
        source.seed('employees', [employee_payload(30, departmentId=2)])
        data = client.get('/api/views/employees', params={'search': 'finance'}).json()
        assert [e['empCode'] for e in data['items']] == ['E030']

    def test_unknown_screen(self, client: TestClient):
        assert client.get('/api/views/payroll').status_code == 404

    def test_screen_list(self, client: TestClient):
        names = {s['screen'] for s in client.get('/api/views').json()}
        assert {'employees', 'leave-types', 'attendances'} <= names

    def test_grouped_leave_types(self, client: TestClient):
        for year in (2023, 2025, 2024):
            client.post('/api/leave-types', json={'leaveTypeName': f'Annual {year}', 'totalLeaves': 10, 'yearPeriod': year})
        data = client.get('/api/views/leave-types').json()
        assert data['grouped'] is True
        assert [g['key'] for g in data['items']] == [2025, 2024, 2023]

    def test_grouped_members_follow_sort_direction(self, client: TestClient):
        for name, year in (('Sick', 2024), ('Annual', 2025), ('Casual', 2024), ('Unpaid', 2025), ('Maternity', 2024)):
            client.post('/api/leave-types', json={'leaveTypeName': name, 'totalLeaves': 10, 'yearPeriod': year})

        def names(data):
            return {g['key']: [r['leaveTypeName'] for r in g['records']] for g in data['items']}

        data = client.get('/api/views/leave-types').json()
        assert names(data) == {2025: ['Annual', 'Unpaid'], 2024: ['Casual', 'Maternity', 'Sick']}
        data = client.post('/api/views/leave-types/sort', json={'column': 'leaveTypeName'}).json()
        assert data['query']['sort_direction'] == 'desc'
        assert names(data) == {2025: ['Unpaid', 'Annual'], 2024: ['Sick', 'Maternity', 'Casual']}

    def test_without_remote_credentials_nothing_is_fetched(self, client: TestClient, source):
        from api.dependencies import _sessions
        token = client.headers['X-Auth-Token']
        _sessions[token] = ConsoleSession(remote_token=None, user={'userId': 1})
        calls = len(source.calls)
        data = client.get('/api/views/departments').json()
        assert data['loaded'] is False
        assert data['items'] == []
        assert len(source.calls) == calls


class TestSortAndPage:
    def test_toggle_sort_email(self, client: TestClient, employees):
        data = client.post('/api/views/employees/sort', json={'column': 'email'}).json()
        assert data['query']['sort_column'] == 'email'
        assert data['query']['sort_direction'] == 'asc'
        data = client.post('/api/views/employees/sort', json={'column': 'email'}).json()
        assert data['query']['sort_direction'] == 'desc'
        assert data['items'][0]['email'] == 'employee25@example.com'

    def test_unsortable_column(self, client: TestClient):
        res = client.post('/api/views/employees/sort', json={'column': 'presentAddress'})
        assert res.status_code == 400

    def test_navigation_clamps(self, client: TestClient, employees):
        assert client.post('/api/views/employees/page', json={'to': 'previous'}).json()['page'] == 1
        assert client.post('/api/views/employees/page', json={'to': 'last'}).json()['page'] == 3
        data = client.post('/api/views/employees/page', json={'to': 'next'}).json()
        assert data['page'] == 3
        assert len(data['items']) == 5
        assert client.post('/api/views/employees/page', json={'to': 42}).json()['page'] == 3
        assert client.post('/api/views/employees/page', json={'to': 'first'}).json()['page'] == 1

    def test_invalid_target(self, client: TestClient):
        assert client.post('/api/views/employees/page', json={'to': 'sideways'}).status_code == 422

    def test_reset(self, client: TestClient, employees):
        client.post('/api/views/employees/sort', json={'column': 'email'})
        client.post('/api/views/employees/sort', json={'column': 'email'})
        client.get('/api/views/employees', params={'search': 'x', 'page': 2})
        query = client.post('/api/views/employees/reset').json()['query']
        assert query == {'search_term': '', 'sort_column': 'email', 'sort_direction': 'asc', 'current_page': 1}


class TestResetAfterMutation:
    def test_create_resets_the_screen(self, client: TestClient):
        client.get('/api/views/departments', params={'search': 'fin'})
        client.post('/api/departments', json={'departmentName': 'Legal'})
        data = client.get('/api/views/departments').json()
        assert data['query']['search_term'] == ''
        assert data['total'] == 4

    def test_other_screens_keep_their_state(self, client: TestClient):
        client.get('/api/views/designations', params={'search': 'eng'})
        client.post('/api/departments', json={'departmentName': 'Legal'})
        data = client.get('/api/views/designations').json()
        assert data['query']['search_term'] == 'eng'
