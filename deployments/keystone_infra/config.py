"""
Deployment configuration records.

All inputs to the composition are plain, immutable records. Defaults are
applied in one place (`KeystoneProps.resolve`) with the precedence:

    explicit caller value > documented default > provider default

Process environment is read only by `DeploymentTarget.from_environ`, which the
CDK entry point calls once and passes down explicitly.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from aws_cdk import Duration, Environment, aws_rds as rds

from .errors import ConfigurationError


DEFAULT_CPU = 512
DEFAULT_MEMORY_LIMIT_MIB = 1024
DEFAULT_DESIRED_COUNT = 1
DEFAULT_PUBLIC_LOAD_BALANCER = True
DEFAULT_AUTO_PAUSE_MINUTES = 10
MAX_AVAILABILITY_ZONES = 3


@dataclass(frozen=True)
class ScalingPolicy:
    """
    Aurora Serverless scaling policy.

    Capacities left as None are filled in by the provider (2 and 16 ACU).
    An auto_pause_minutes of 0 keeps the cluster running.
    """

    auto_pause_minutes: int = DEFAULT_AUTO_PAUSE_MINUTES
    min_capacity: Optional[int] = None
    max_capacity: Optional[int] = None

    def to_cdk(self) -> rds.ServerlessScalingOptions:
        return rds.ServerlessScalingOptions(
            auto_pause=Duration.minutes(self.auto_pause_minutes),
            min_capacity=_capacity_unit(self.min_capacity),
            max_capacity=_capacity_unit(self.max_capacity),
        )


def _capacity_unit(value: Optional[int]) -> Optional[rds.AuroraCapacityUnit]:
    if value is None:
        return None
    unit = getattr(rds.AuroraCapacityUnit, f'ACU_{value}', None)
    if unit is None:
        raise ConfigurationError(
            f'{value} is not an Aurora capacity unit',
            {'field': 'auroraScaling', 'value': value},
        )
    return unit


@dataclass(frozen=True)
class ResolvedProps:
    """KeystoneProps with every default applied."""

    domain_name: Optional[str]
    cpu: int
    memory_limit_mib: int
    desired_count: int
    public_load_balancer: bool
    aurora_scaling: ScalingPolicy
    max_azs: int


@dataclass(frozen=True)
class KeystoneProps:
    """
    Top-level deployment input. Every field is optional.

    Attributes:
        domain_name: Custom domain; creates an ACM certificate and Route53 record
        cpu: Fargate task cpu units (default 512)
        memory_limit_mib: Fargate task memory in MiB (default 1024)
        desired_count: Number of running tasks (default 1)
        public_load_balancer: Whether the load balancer is internet-facing (default True)
        aurora_scaling: Aurora Serverless scaling (default: pause after 10 idle minutes)
        max_azs: Availability zones to span (default: all in region, capped at 3)
    """

    domain_name: Optional[str] = None
    cpu: Optional[int] = None
    memory_limit_mib: Optional[int] = None
    desired_count: Optional[int] = None
    public_load_balancer: Optional[bool] = None
    aurora_scaling: Optional[ScalingPolicy] = None
    max_azs: Optional[int] = None

    def resolve(self) -> ResolvedProps:
        return ResolvedProps(
            domain_name=self.domain_name or None,
            cpu=_pick(self.cpu, DEFAULT_CPU),
            memory_limit_mib=_pick(self.memory_limit_mib, DEFAULT_MEMORY_LIMIT_MIB),
            desired_count=_pick(self.desired_count, DEFAULT_DESIRED_COUNT),
            public_load_balancer=_pick(self.public_load_balancer, DEFAULT_PUBLIC_LOAD_BALANCER),
            aurora_scaling=_pick(self.aurora_scaling, ScalingPolicy()),
            max_azs=_pick(self.max_azs, MAX_AVAILABILITY_ZONES),
        )


def _pick(value, default):
    # False and 0 are explicit values, only None falls through
    return default if value is None else value


@dataclass(frozen=True)
class DeploymentTarget:
    """
    Target AWS account and region.

    When either is missing the stack is environment-agnostic, which rules out
    context lookups such as the hosted zone lookup.
    """

    account: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> 'DeploymentTarget':
        """
        Read AWS_ACCOUNT / AWS_REGION, falling back to the CDK CLI defaults.
        """
        environ = os.environ if environ is None else environ
        account = environ.get('AWS_ACCOUNT') or environ.get('CDK_DEFAULT_ACCOUNT')
        region = environ.get('AWS_REGION') or environ.get('CDK_DEFAULT_REGION')
        return cls(account=account or None, region=region or None)

    @property
    def is_concrete(self) -> bool:
        return bool(self.account and self.region)

    def to_environment(self) -> Optional[Environment]:
        if not self.is_concrete:
            return None
        return Environment(account=self.account, region=self.region)
