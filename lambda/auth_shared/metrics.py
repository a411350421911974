"""
Request metrics for the auth functions, published to the TodoAuth namespace.

RequestCount, ErrorCount (by ErrorCode) and Latency, each dimensioned by
Operation so signup, login and the authorizer can be alarmed on separately.

Follows steering rules:
- Explicit over implicit
- Fail fast on invalid input
- No global mutable state
"""

import json
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError


# Metric namespace for all auth metrics
METRIC_NAMESPACE = 'TodoAuth'

# CloudWatch PutMetricData limit per request
BATCH_SIZE = 20


class MetricsClient:
    """
    CloudWatch metrics client for Lambda handlers.

    Metrics are buffered during the request and sent in one go by publish().
    The CloudWatch client is created on first publish, so a disabled client
    never touches AWS.

    Usage:
        metrics = MetricsClient(operation='auth-signup')
        metrics.emit_request_count()
        metrics.emit_latency(latency_ms=150)
        metrics.emit_error(error_code='CONFLICT')
        metrics.publish()
    """

    def __init__(self, operation: str, enabled: bool = True, client: Any = None):
        """
        Initialize the metrics client.

        Args:
            operation: Operation name (e.g., 'auth-signup', 'auth-authorizer')
            enabled: When False, metrics are collected but never published
            client: Pre-built CloudWatch client (optional)
        """
        if not operation or not operation.strip():
            raise ValueError('Operation name is required for metrics')

        self.operation = operation
        self.enabled = enabled
        self._cloudwatch = client
        self._metric_data: List[Dict[str, Any]] = []

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return list(self._metric_data)

    def _add_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: Optional[List[Dict[str, str]]] = None
    ) -> None:
        all_dimensions = [{'Name': 'Operation', 'Value': self.operation}]
        if dimensions:
            all_dimensions.extend(dimensions)

        self._metric_data.append({
            'MetricName': metric_name,
            'Value': value,
            'Unit': unit,
            'Timestamp': datetime.now(timezone.utc),
            'Dimensions': all_dimensions
        })

    def emit_request_count(self, count: int = 1) -> None:
        self._add_metric('RequestCount', float(count), 'Count')

    def emit_error(self, error_code: Optional[str] = None) -> None:
        """
        Emit error metric.

        Args:
            error_code: Error code dimension (e.g., 'INVALID_CREDENTIALS') (optional)
        """
        dimensions = []
        if error_code:
            dimensions.append({'Name': 'ErrorCode', 'Value': error_code})

        self._add_metric('ErrorCount', 1.0, 'Count', dimensions or None)

    def emit_latency(self, latency_ms: int) -> None:
        if latency_ms < 0:
            raise ValueError('Latency must be non-negative')

        self._add_metric('Latency', float(latency_ms), 'Milliseconds')

    def publish(self) -> None:
        """
        Publish all accumulated metrics to CloudWatch.

        Sends metrics in batches of 20. Failures are logged and the buffer is
        dropped; metrics never fail a request.
        """
        if not self._metric_data:
            return

        if not self.enabled:
            self._metric_data = []
            return

        try:
            if self._cloudwatch is None:
                self._cloudwatch = boto3.client('cloudwatch')

            for i in range(0, len(self._metric_data), BATCH_SIZE):
                self._cloudwatch.put_metric_data(
                    Namespace=METRIC_NAMESPACE,
                    MetricData=self._metric_data[i:i + BATCH_SIZE]
                )
        except (BotoCoreError, ClientError) as error:
            print(json.dumps({
                'event': 'metrics_publish_failed',
                'operation': self.operation,
                'errorType': type(error).__name__
            }))
        finally:
            self._metric_data = []


def create_metrics_client(operation: str, enabled: bool = True) -> MetricsClient:
    """
    Create a metrics client for a Lambda operation.

    Args:
        operation: Operation name (e.g., 'auth-api')
        enabled: Publish to CloudWatch

    Returns:
        MetricsClient instance
    """
    return MetricsClient(operation, enabled=enabled)
