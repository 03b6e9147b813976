"""
Configuration error classes for the Keystone deployment.

These error classes provide explicit, typed exceptions for every invariant the
composition enforces before a resource graph is rendered. All errors follow the
principle of "fail fast": they are raised while the constructs are being
declared, never deferred to CloudFormation.
"""

from typing import Any, Dict, List, Optional


class KeystoneError(Exception):
    """
    Base class for all deployment errors.

    Carries a stable error code, a human-readable message and optional
    structured details (usually the list returned by a validator).
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ConfigurationError(KeystoneError):
    """
    Raised when caller-supplied values violate a deployment invariant.

    Configuration errors are fatal to the current synth and are never retried.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 code: str = 'CONFIGURATION_ERROR'):
        super().__init__(code, message, details)

    @classmethod
    def from_errors(cls, message: str, errors: List[Dict[str, str]]) -> 'ConfigurationError':
        """Build an error from a validator's field-level error list."""
        return cls(message, {'errors': errors})


class TaskSizeError(ConfigurationError):
    """
    Raised when the Fargate cpu/memory pair is not a valid combination.
    """

    def __init__(self, cpu: Any, memory_limit_mib: Any):
        super().__init__(
            f'Invalid task size: cpu={cpu} memory={memory_limit_mib}MiB',
            {'cpu': cpu, 'memoryLimitMiB': memory_limit_mib},
            code='INVALID_TASK_SIZE',
        )


class HostedZoneNotFoundError(ConfigurationError):
    """
    Raised when a custom domain is requested but no hosted zone exists for it.

    A certificate cannot be validated without the zone.
    """

    def __init__(self, domain_name: str):
        super().__init__(
            f'No Route53 hosted zone found for domain {domain_name}',
            {'domainName': domain_name},
            code='HOSTED_ZONE_NOT_FOUND',
        )


class UnresolvedSecretError(ConfigurationError):
    """
    Raised when a secret reference is requested before its secret exists.
    """

    def __init__(self, message: str):
        super().__init__(message, code='UNRESOLVED_SECRET')


class MissingConnectionStringError(ConfigurationError):
    """
    Raised when the compute layer is declared without a database connection.
    """

    def __init__(self):
        super().__init__(
            'A database connection string is required to start the container',
            code='MISSING_CONNECTION_STRING',
        )
