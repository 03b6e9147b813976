"""
Structured logging utility for CDK synthesis.

This module provides the logger used by the composition and the CDK entry point.
Every entry is a single JSON line carrying the synth correlation ID, so a synth
run can be traced through `cdk synth` output and CI logs.

Conventions:
- Log the synth lifecycle with a correlation ID
- Log configuration errors with context (no secret values)
- Use a consistent log format
"""

import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Field names whose values are never logged
SENSITIVE_FIELDS = {
    'password',
    'token',
    'secret',
    'secretvalue',
    'secret_value',
    'credentials',
    'databaseurl',
    'database_url',
    'connectionstring',
    'connection_string',
    'sessionsecret',
    'session_secret',
}


class StructuredLogger:
    """
    Structured logger for a single synth run.

    Usage:
        logger = StructuredLogger(correlation_id='abc-123', operation='keystone-synth')
        logger.log_synth_start(stack_id='keystone-dev-stack')
        logger.log_component('network', 'KeystoneNetwork')
        logger.log_synth_complete(stack_id='keystone-dev-stack')
    """

    def __init__(self, correlation_id: str, operation: str):
        """
        Initialize the structured logger.

        Args:
            correlation_id: Unique identifier for the synth run
            operation: Operation name (e.g., 'keystone-synth')
        """
        self.correlation_id = correlation_id
        self.operation = operation
        self.start_time = time.time()

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Redact sensitive fields from log data, recursing into dicts and lists.
        """
        if not isinstance(data, dict):
            return data

        sanitized = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                sanitized[key] = '[REDACTED]'
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_data(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_data(item) if isinstance(item, dict) else item
                    for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized

    def _latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def _log(self, event: str, **kwargs: Any) -> None:
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'correlationId': self.correlation_id,
            'operation': self.operation,
            'event': event,
            **self._sanitize_data(kwargs)
        }

        print(json.dumps(log_entry, default=str))

    def log_synth_start(self, stack_id: str, **additional_fields: Any) -> None:
        """
        Log the start of a stack declaration.

        Args:
            stack_id: CloudFormation stack identifier
            **additional_fields: Additional fields to include in log
        """
        self._log('synth_start', stackId=stack_id, **additional_fields)

    def log_component(self, component: str, construct_id: str, **additional_fields: Any) -> None:
        """
        Log that a component fragment has been declared.

        Args:
            component: Component name (network, database, compute, certificate)
            construct_id: Construct ID of the declared fragment
        """
        self._log(
            'component_declared',
            component=component,
            constructId=construct_id,
            **additional_fields
        )

    def log_configuration_error(
        self,
        error_code: str,
        error_message: str,
        **additional_fields: Any
    ) -> None:
        """
        Log a configuration error with latency.

        Example:
            logger.log_configuration_error(
                error_code='INVALID_TASK_SIZE',
                error_message='Invalid task size: cpu=512 memory=512MiB'
            )
        """
        self._log(
            'configuration_error',
            errorCode=error_code,
            errorMessage=error_message,
            latencyMs=self._latency_ms(),
            **additional_fields
        )

    def log_synth_complete(self, stack_id: str, **additional_fields: Any) -> None:
        """
        Log the completed declaration of a stack, with latency in milliseconds.
        """
        self._log(
            'synth_complete',
            stackId=stack_id,
            latencyMs=self._latency_ms(),
            **additional_fields
        )

    def log_info(self, message: str, **additional_fields: Any) -> None:
        self._log('info', message=message, **additional_fields)


def create_logger(operation: str, correlation_id: Optional[str] = None) -> StructuredLogger:
    """
    Create a structured logger for a synth run.

    Args:
        operation: Operation name (e.g., 'keystone-synth')
        correlation_id: Correlation ID; a random UUID is generated when omitted

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(correlation_id or str(uuid.uuid4()), operation)
