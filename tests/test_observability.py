"""
Unit tests for configuration loading, structured logging and metrics.
"""

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from auth_shared.config import is_production, load_config, metrics_enabled
from auth_shared.logger import StructuredLogger, create_logger, log_event, sanitize
from auth_shared.mailer import SesCodeMailer
from auth_shared.metrics import BATCH_SIZE, METRIC_NAMESPACE, MetricsClient


REQUIRED = ['TABLE_NAME', 'JWT_SECRET_PARAMETER_NAME', 'SOURCE_EMAIL']
ENV = {
    'TABLE_NAME': 'todo-auth',
    'JWT_SECRET_PARAMETER_NAME': '/todo-auth/jwt-secret',
    'SOURCE_EMAIL': 'no-reply@example.com',
}


class TestLoadConfig:
    """Test environment configuration."""

    def test_required_and_defaults(self):
        config = load_config(REQUIRED, ENV)

        assert config['table_name'] == 'todo-auth'
        assert config['environment'] == 'dev'
        assert config['token_ttl_hours'] == '24'
        assert config['secret_cache_ttl_seconds'] == '300'

    def test_missing_vars_listed(self):
        with pytest.raises(ValueError) as exc_info:
            load_config(REQUIRED, {'TABLE_NAME': 'todo-auth'})

        assert 'JWT_SECRET_PARAMETER_NAME' in str(exc_info.value)
        assert 'SOURCE_EMAIL' in str(exc_info.value)

    def test_empty_value_counts_as_missing(self):
        with pytest.raises(ValueError):
            load_config(REQUIRED, {**ENV, 'TABLE_NAME': ''})

    @pytest.mark.parametrize('value', ['0', '-1', 'soon'])
    def test_token_ttl_must_be_positive_integer(self, value):
        with pytest.raises(ValueError):
            load_config(REQUIRED, {**ENV, 'TOKEN_TTL_HOURS': value})

    def test_production_detection(self):
        assert is_production(load_config(REQUIRED, {**ENV, 'ENVIRONMENT': 'prod'}))
        assert not is_production(load_config(REQUIRED, ENV))

    def test_metrics_switch(self):
        assert metrics_enabled(load_config(REQUIRED, ENV))
        assert not metrics_enabled(load_config(REQUIRED, {**ENV, 'METRICS_ENABLED': 'false'}))


class TestSanitize:
    """Test redaction of sensitive fields."""

    def test_redacts_nested_fields(self):
        data = {
            'email': 'a@example.com',
            'Password': 'longpass1',
            'nested': {'token': 'abc', 'items': [{'code': '123456'}]}
        }

        assert sanitize(data) == {
            'email': 'a@example.com',
            'Password': '[REDACTED]',
            'nested': {'token': '[REDACTED]', 'items': [{'code': '[REDACTED]'}]}
        }

    def test_non_dict_values_untouched(self):
        assert sanitize('plain') == 'plain'


class TestStructuredLogger:
    """Test log line format."""

    def _lines(self, capsys):
        return [json.loads(line) for line in capsys.readouterr().out.splitlines()]

    def test_request_lifecycle(self, capsys):
        logger = create_logger({'requestContext': {'requestId': 'req-1'}}, 'auth-api', metrics_enabled=False)

        logger.log_request_start(path='/auth/login', method='POST')
        logger.log_request_complete(status_code=200)

        start, complete = self._lines(capsys)
        assert start['event'] == 'request_start'
        assert start['correlationId'] == 'req-1'
        assert start['httpMethod'] == 'POST'
        assert complete['statusCode'] == 200
        assert complete['latencyMs'] >= 0

    def test_missing_request_id(self):
        assert create_logger({}, 'auth-api', metrics_enabled=False).correlation_id == 'unknown'

    def test_domain_error_fields(self, capsys):
        logger = StructuredLogger('req-2', 'auth-api', metrics_enabled=False)

        logger.log_domain_error(error_code='CONFLICT', error_message='User already exists', status_code=409)

        line = self._lines(capsys)[0]
        assert line['errorCode'] == 'CONFLICT'
        assert line['statusCode'] == 409
        assert logger.metrics.pending[0]['Dimensions'][1] == {'Name': 'ErrorCode', 'Value': 'CONFLICT'}

    def test_log_event_redacts(self, capsys):
        log_event('debug', secret='s3cret', parameterName='/p')

        line = self._lines(capsys)[0]
        assert line['secret'] == '[REDACTED]'
        assert line['parameterName'] == '/p'


class TestMetricsClient:
    """Test CloudWatch metric buffering and publishing."""

    def test_publishes_in_batches(self):
        cloudwatch = MagicMock()
        metrics = MetricsClient('auth-api', client=cloudwatch)
        for _ in range(BATCH_SIZE + 5):
            metrics.emit_request_count()

        metrics.publish()

        assert cloudwatch.put_metric_data.call_count == 2
        first = cloudwatch.put_metric_data.call_args_list[0].kwargs
        assert first['Namespace'] == METRIC_NAMESPACE
        assert len(first['MetricData']) == BATCH_SIZE
        assert metrics.pending == []

    def test_operation_dimension(self):
        metrics = MetricsClient('auth-authorizer', enabled=False)
        metrics.emit_latency(12)

        metric = metrics.pending[0]
        assert metric['MetricName'] == 'Latency'
        assert metric['Unit'] == 'Milliseconds'
        assert metric['Dimensions'] == [{'Name': 'Operation', 'Value': 'auth-authorizer'}]

    def test_disabled_client_never_calls_aws(self):
        cloudwatch = MagicMock()
        metrics = MetricsClient('auth-api', enabled=False, client=cloudwatch)
        metrics.emit_error('INTERNAL_ERROR')

        metrics.publish()

        cloudwatch.put_metric_data.assert_not_called()
        assert metrics.pending == []

    def test_publish_failure_is_swallowed(self, capsys):
        cloudwatch = MagicMock()
        cloudwatch.put_metric_data.side_effect = ClientError(
            {'Error': {'Code': 'Throttling', 'Message': 'slow down'}}, 'PutMetricData'
        )
        metrics = MetricsClient('auth-api', client=cloudwatch)
        metrics.emit_request_count()

        metrics.publish()

        assert json.loads(capsys.readouterr().out)['event'] == 'metrics_publish_failed'
        assert metrics.pending == []

    def test_negative_latency(self):
        with pytest.raises(ValueError):
            MetricsClient('auth-api').emit_latency(-1)

    def test_operation_required(self):
        with pytest.raises(ValueError):
            MetricsClient(' ')


class TestSesCodeMailer:
    """Test verification email delivery."""

    def test_sends_code_from_configured_sender(self):
        ses = MagicMock()
        mailer = SesCodeMailer('no-reply@example.com', client=ses)

        mailer.send_code('a@example.com', '012345', 'SIGNUP', 600)

        params = ses.send_email.call_args.kwargs
        assert params['Source'] == 'no-reply@example.com'
        assert params['Destination'] == {'ToAddresses': ['a@example.com']}
        assert '012345' in params['Message']['Body']['Text']['Data']

    def test_send_failure_propagates(self):
        ses = MagicMock()
        ses.send_email.side_effect = ClientError(
            {'Error': {'Code': 'MessageRejected', 'Message': 'not verified'}}, 'SendEmail'
        )

        with pytest.raises(ClientError):
            SesCodeMailer('no-reply@example.com', client=ses).send_code('a@example.com', '012345', 'SIGNUP', 600)

    def test_sender_required(self):
        with pytest.raises(ValueError):
            SesCodeMailer('', client=MagicMock())
