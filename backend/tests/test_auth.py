"""Tests for login, logout and the auth middleware."""
from starlette.testclient import TestClient

from hrlib.session import ConsoleSession
from conftest import ADMIN


class TestLogin:
    def test_login_returns_console_token(self, anon_client: TestClient):
        res = anon_client.post('/api/auth/login', json={'username': 'admin', 'password': ADMIN['password']})
        assert res.status_code == 200
        data = res.json()
        assert data['ok'] is True
        assert len(data['token']) == 64
        assert data['user']['username'] == 'admin'
        assert 'password' not in data['user']

    def test_wrong_password_returns_401(self, anon_client: TestClient):
        res = anon_client.post('/api/auth/login', json={'username': 'admin', 'password': 'wrong'})
        assert res.status_code == 401
        assert res.json()['detail'] == 'Invalid username or password'

    def test_blank_credentials_return_400(self, anon_client: TestClient):
        res = anon_client.post('/api/auth/login', json={'username': ' ', 'password': ''})
        assert res.status_code == 400

    def test_missing_fields_return_422(self, anon_client: TestClient):
        res = anon_client.post('/api/auth/login', json={'username': 'admin'})
        assert res.status_code == 422
        assert 'password' in res.json()['detail']


class TestSessionLifecycle:
    def test_protected_path_requires_token(self, anon_client: TestClient):
        res = anon_client.get('/api/departments')
        assert res.status_code == 401
        assert res.json()['detail'] == 'Not signed in'

    def test_me(self, client: TestClient):
        res = client.get('/api/auth/me')
        assert res.status_code == 200
        assert res.json()['user']['userId'] == 1

    def test_logout_invalidates_token(self, client: TestClient):
        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_expired_session_is_rejected(self, client: TestClient):
        from api.dependencies import _sessions
        token = client.headers['X-Auth-Token']
        _sessions[token].expires_at = 0
        assert client.get('/api/departments').status_code == 401
        assert token not in _sessions

    def test_purge_expired_sessions(self, client: TestClient):
        from api.dependencies import _sessions, purge_expired_sessions
        _sessions[client.headers['X-Auth-Token']].expires_at = 0
        assert purge_expired_sessions() == 1
        assert _sessions == {}


class TestPublicEndpoints:
    def test_health(self, anon_client: TestClient):
        res = anon_client.get('/api/health')
        assert res.status_code == 200
        assert res.json()['status'] == 'ok'
        assert res.json()['source']['kind'] == 'MemoryRecordSource'

    def test_version_and_headers(self, anon_client: TestClient):
        res = anon_client.get('/api/version')
        assert res.status_code == 200
        assert res.headers['X-Content-Type-Options'] == 'nosniff'
        assert 'X-Request-ID' in res.headers

    def test_dashboard_summary(self, client: TestClient, employees):
        res = client.get('/api/dashboard/summary')
        assert res.status_code == 200
        assert res.json()['employees'] == 25
        assert res.json()['departments'] == 3

    def test_dashboard_without_remote_credentials(self, client: TestClient, source, employees):
        from api.dependencies import _sessions
        _sessions[client.headers['X-Auth-Token']] = ConsoleSession(remote_token=None, user={'userId': 1})
        calls = len(source.calls)
        res = client.get('/api/dashboard/summary')
        assert res.status_code == 200
        assert res.json() == {'employees': 0, 'active_employees': 0, 'departments': 0, 'upcoming_holidays': []}
        assert client.get('/api/departments').json() == []
        assert client.get('/api/departments/1').status_code == 404
        assert len(source.calls) == calls
