"""
Unit tests for the auth API Lambda handler.

The module-level service is replaced with one backed by the in-memory store,
so these tests cover routing, body parsing and error mapping end to end.
"""

import base64
import json

import pytest

import handler as auth_api


def _event(method, path, body=None, version=1, **extra):
    raw = json.dumps(body) if isinstance(body, dict) else body
    if version == 2:
        event = {
            'version': '2.0',
            'routeKey': f'{method} {path}',
            'rawPath': path,
            'requestContext': {'requestId': 'req-123', 'http': {'method': method, 'path': path}},
            'body': raw
        }
    else:
        event = {
            'httpMethod': method,
            'resource': path,
            'path': path,
            'requestContext': {'requestId': 'req-123'},
            'body': raw
        }
    event.update(extra)
    return event


def _call(method, path, body=None, **kwargs):
    response = auth_api.handler(_event(method, path, body, **kwargs), None)
    payload = json.loads(response['body']) if response['body'] else None
    return response, payload


@pytest.fixture(autouse=True)
def service(auth_service, monkeypatch):
    monkeypatch.setattr(auth_api, 'auth_service', auth_service)
    return auth_service


def _signup(email='user@example.com', password='longpass1'):
    return _call('POST', '/auth/signup', {'email': email, 'password': password})


def _verified(mailer, email='user@example.com'):
    _signup(email)
    return _call('POST', '/auth/verify', {'email': email, 'code': mailer.last_code(email)})


class TestRouting:
    """Test route resolution, preflight and unknown routes."""

    @pytest.mark.parametrize('path', list(auth_api.ROUTES))
    def test_options_preflight(self, path):
        response = auth_api.handler(_event('OPTIONS', path), None)

        assert response['statusCode'] == 200
        assert response['body'] == ''
        assert response['headers']['Access-Control-Allow-Origin'] == '*'
        assert 'OPTIONS' in response['headers']['Access-Control-Allow-Methods']
        assert 'Authorization' in response['headers']['Access-Control-Allow-Headers']

    def test_unknown_path(self):
        response, payload = _call('POST', '/auth/unknown', {})

        assert response['statusCode'] == 404
        assert payload['code'] == 'NOT_FOUND'

    def test_wrong_method(self):
        response, payload = _call('GET', '/auth/login')

        assert response['statusCode'] == 405
        assert payload['code'] == 'METHOD_NOT_ALLOWED'

    def test_http_api_event(self, mailer):
        response, payload = _call(
            'POST', '/auth/signup', {'email': 'user@example.com', 'password': 'longpass1'}, version=2
        )

        assert response['statusCode'] == 201
        assert payload == {'message': 'Verification code sent to your email'}

    def test_trailing_slash(self):
        response, _ = _call('POST', '/auth/signup/', {'email': 'user@example.com', 'password': 'longpass1'})

        assert response['statusCode'] == 201

    def test_resolve_route_prefers_route_key(self):
        route = auth_api.resolve_route({'routeKey': 'post /auth/login', 'rawPath': '/other'})

        assert (route.method, route.path) == ('POST', '/auth/login')

    def test_resolve_route_proxy_resource_uses_path(self):
        route = auth_api.resolve_route({
            'httpMethod': 'POST',
            'resource': '/{proxy+}',
            'path': '/auth/verify'
        })

        assert (route.method, route.path) == ('POST', '/auth/verify')


class TestBodyParsing:
    """Test request body handling."""

    def test_invalid_json(self):
        response, payload = _call('POST', '/auth/signup', '{not json')

        assert response['statusCode'] == 400
        assert payload['code'] == 'VALIDATION_ERROR'
        assert payload['error'] == 'Invalid JSON in request body'

    def test_missing_body(self):
        response, payload = _call('POST', '/auth/login')

        assert response['statusCode'] == 400
        fields = {e['field'] for e in payload['details']['errors']}
        assert fields == {'email', 'password'}

    def test_json_array_body(self):
        response, payload = _call('POST', '/auth/login', '[]')

        assert response['statusCode'] == 400
        assert payload['details']['errors'][0]['field'] == 'body'

    def test_base64_body(self):
        raw = json.dumps({'email': 'user@example.com', 'password': 'longpass1'})
        response, _ = _call(
            'POST', '/auth/signup',
            base64.b64encode(raw.encode()).decode(),
            isBase64Encoded=True
        )

        assert response['statusCode'] == 201


class TestSignupRoute:

    def test_created(self, mailer):
        response, payload = _signup()

        assert response['statusCode'] == 201
        assert payload == {'message': 'Verification code sent to your email'}
        assert response['headers']['Content-Type'] == 'application/json'
        assert len(mailer.sent) == 1

    def test_email_is_normalized(self, users):
        _signup(email='  User@Example.com ')

        assert users.find_by_email('user@example.com') is not None

    def test_duplicate_active_user(self, mailer):
        _verified(mailer)

        response, payload = _signup()

        assert response['statusCode'] == 409
        assert payload['code'] == 'CONFLICT'

    def test_duplicate_pending_user(self):
        _signup()

        response, payload = _signup()

        assert response['statusCode'] == 409
        assert payload['details'] == {'reason': 'PENDING_VERIFICATION'}

    def test_short_password(self):
        response, payload = _signup(password='short')

        assert response['statusCode'] == 400
        assert payload['details']['errors'] == [
            {'field': 'password', 'message': 'Password must be at least 8 characters long'}
        ]


class TestVerifyRoute:

    def test_verified(self, mailer):
        response, payload = _verified(mailer)

        assert response['statusCode'] == 200
        assert payload['message'] == 'Email verified successfully'
        assert payload['user']['status'] == 'ACTIVE'
        assert set(payload['user']) == {'id', 'email', 'name', 'status'}

    def test_wrong_code(self):
        _signup()

        response, payload = _call('POST', '/auth/verify', {'email': 'user@example.com', 'code': '000000'})

        assert response['statusCode'] == 400
        assert payload == {'error': 'Invalid or expired verification code', 'code': 'INVALID_CODE'}


class TestLoginRoute:

    def test_token_issued(self, mailer, tokens):
        _verified(mailer)

        response, payload = _call('POST', '/auth/login', {'email': 'user@example.com', 'password': 'longpass1'})

        assert response['statusCode'] == 200
        assert tokens.verify(payload['token']).email == 'user@example.com'
        assert set(payload['user']) == {'id', 'email', 'name', 'role'}
        assert 'passwordHash' not in response['body']

    def test_wrong_password(self, mailer):
        _verified(mailer)

        response, payload = _call('POST', '/auth/login', {'email': 'user@example.com', 'password': 'wrongpass'})

        assert response['statusCode'] == 401
        assert payload['code'] == 'INVALID_CREDENTIALS'

    def test_not_verified(self):
        _signup()

        response, payload = _call('POST', '/auth/login', {'email': 'user@example.com', 'password': 'longpass1'})

        assert response['statusCode'] == 401
        assert payload['code'] == 'NOT_VERIFIED'


class TestCodeRoutes:
    """Test resend-code and the password reset routes."""

    def test_resend_does_not_reveal_account_state(self, mailer):
        _signup()

        pending, pending_payload = _call('POST', '/auth/resend-code', {'email': 'user@example.com'})
        unknown, unknown_payload = _call('POST', '/auth/resend-code', {'email': 'nobody@example.com'})

        assert pending['statusCode'] == unknown['statusCode'] == 200
        assert pending_payload == unknown_payload
        assert len(mailer.sent) == 2

    def test_forgot_then_reset(self, mailer):
        _verified(mailer)

        forgot, _ = _call('POST', '/auth/password/forgot', {'email': 'user@example.com'})
        reset, payload = _call('POST', '/auth/password/reset', {
            'email': 'user@example.com',
            'code': mailer.last_code('user@example.com'),
            'password': 'brandnew12'
        })
        login, _ = _call('POST', '/auth/login', {'email': 'user@example.com', 'password': 'brandnew12'})

        assert forgot['statusCode'] == 200
        assert reset['statusCode'] == 200
        assert payload == {'message': 'Password has been reset'}
        assert login['statusCode'] == 200


class TestUnexpectedErrors:

    def test_internal_error_hides_details(self, service, monkeypatch, capsys):
        def explode(request):
            raise RuntimeError('table todo-auth-test is on fire')

        monkeypatch.setattr(service, 'signup', explode)

        response, payload = _signup()

        assert response['statusCode'] == 500
        assert payload == {'error': 'An unexpected error occurred', 'code': 'INTERNAL_ERROR'}
        assert 'on fire' not in capsys.readouterr().out

    def test_logs_never_contain_passwords(self, capsys):
        _signup(password='super-secret-pass')

        out = capsys.readouterr().out
        assert 'super-secret-pass' not in out
        assert '"correlationId": "req-123"' in out
