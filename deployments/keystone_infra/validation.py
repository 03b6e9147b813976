"""
Deployment input validation.

This module implements validation for the top-level deployment props.
Follows the "fail fast" principle - all validation happens before a single
construct is declared.

Validates:
- cpu/memory pair is one of the Fargate task sizes
- desired_count is at least 1
- max_azs is at least 1 (larger values are capped by the network builder)
- Aurora scaling capacities and auto-pause window are accepted by Aurora Serverless
- domain_name looks like a DNS name

Each validator returns a list of errors; an empty list means the input is valid.
Each error is a dict with 'field' and 'message' keys.
"""

import re
from typing import Dict, FrozenSet, List, Optional

from .config import ResolvedProps, ScalingPolicy


def _memory_range(start: int, stop: int) -> FrozenSet[int]:
    return frozenset(range(start, stop + 1, 1024))


# Fargate cpu units -> valid memory (MiB)
TASK_SIZES: Dict[int, FrozenSet[int]] = {
    512: _memory_range(1024, 4096),
    1024: _memory_range(2048, 8192),
    2048: _memory_range(4096, 16384),
    4096: _memory_range(8192, 30720),
}

AURORA_CAPACITY_UNITS = (1, 2, 4, 8, 16, 32, 64, 128, 192, 256, 384)

# Aurora Serverless accepts 5 minutes to 1 day, or 0 to disable auto-pause
MIN_AUTO_PAUSE_MINUTES = 5
MAX_AUTO_PAUSE_MINUTES = 24 * 60

DOMAIN_NAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)(?!-)[a-z0-9-]{1,63}(?<!-)(\.(?!-)[a-z0-9-]{1,63}(?<!-))+$'
)


def is_valid_task_size(cpu: int, memory_limit_mib: int) -> bool:
    """
    Check a cpu/memory pair against the Fargate task size table.

    Examples:
        >>> is_valid_task_size(512, 1024)
        True

        >>> is_valid_task_size(512, 8192)
        False
    """
    return memory_limit_mib in TASK_SIZES.get(cpu, frozenset())


def validate_task_size(cpu: int, memory_limit_mib: int) -> List[Dict[str, str]]:
    """
    Validate the Fargate cpu/memory pair.

    Returns:
        List of validation errors. Empty list if validation passes.

    Examples:
        >>> validate_task_size(1024, 2048)
        []

        >>> validate_task_size(256, 512)
        [{'field': 'cpu', 'message': 'cpu must be one of: 512, 1024, 2048, 4096'}]
    """
    errors: List[Dict[str, str]] = []

    if cpu not in TASK_SIZES:
        errors.append({
            'field': 'cpu',
            'message': f"cpu must be one of: {', '.join(str(c) for c in sorted(TASK_SIZES))}"
        })
        return errors

    if memory_limit_mib not in TASK_SIZES[cpu]:
        valid = sorted(TASK_SIZES[cpu])
        errors.append({
            'field': 'memoryLimitMiB',
            'message': (
                f'memory for {cpu} cpu units must be between {valid[0]} and {valid[-1]} '
                'MiB in 1024 MiB increments'
            )
        })

    return errors


def validate_scaling(scaling: ScalingPolicy) -> List[Dict[str, str]]:
    """
    Validate an Aurora Serverless scaling policy.
    """
    errors: List[Dict[str, str]] = []

    pause = scaling.auto_pause_minutes
    if pause != 0 and not MIN_AUTO_PAUSE_MINUTES <= pause <= MAX_AUTO_PAUSE_MINUTES:
        errors.append({
            'field': 'auroraScaling.autoPauseMinutes',
            'message': (
                f'Auto-pause must be 0 (disabled) or between {MIN_AUTO_PAUSE_MINUTES} '
                f'and {MAX_AUTO_PAUSE_MINUTES} minutes'
            )
        })

    for name, value in (('minCapacity', scaling.min_capacity), ('maxCapacity', scaling.max_capacity)):
        if value is not None and value not in AURORA_CAPACITY_UNITS:
            errors.append({
                'field': f'auroraScaling.{name}',
                'message': f"Capacity must be one of: {', '.join(str(u) for u in AURORA_CAPACITY_UNITS)}"
            })

    if (
        scaling.min_capacity is not None
        and scaling.max_capacity is not None
        and scaling.min_capacity > scaling.max_capacity
    ):
        errors.append({
            'field': 'auroraScaling.minCapacity',
            'message': 'Minimum capacity must not exceed maximum capacity'
        })

    return errors


def validate_domain_name(domain_name: Optional[str]) -> List[Dict[str, str]]:
    if domain_name is None:
        return []
    if not DOMAIN_NAME_PATTERN.match(domain_name.lower()):
        return [{'field': 'domainName', 'message': 'Domain name is not a valid DNS name'}]
    return []


def validate_props(props: ResolvedProps) -> List[Dict[str, str]]:
    """
    Validate fully resolved deployment props.

    Performs the following validations:
    1. cpu/memory pair is a Fargate task size
    2. desired_count is an integer of at least 1
    3. max_azs is at least 1
    4. Aurora scaling policy is accepted by Aurora Serverless
    5. domain_name is a valid DNS name when given

    Args:
        props: Props with defaults applied

    Returns:
        List of validation errors. Empty list if validation passes.
    """
    errors: List[Dict[str, str]] = []

    errors.extend(validate_task_size(props.cpu, props.memory_limit_mib))

    if not isinstance(props.desired_count, int) or props.desired_count < 1:
        errors.append({
            'field': 'desiredCount',
            'message': 'Desired count must be at least 1'
        })

    if not isinstance(props.max_azs, int) or props.max_azs < 1:
        errors.append({
            'field': 'maxAzs',
            'message': 'Availability zone count must be at least 1'
        })

    errors.extend(validate_scaling(props.aurora_scaling))
    errors.extend(validate_domain_name(props.domain_name))

    return errors
