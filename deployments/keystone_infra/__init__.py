"""Keystone CMS deployment on AWS: VPC, Aurora Serverless and Fargate."""

from .config import DeploymentTarget, KeystoneProps, ScalingPolicy
from .errors import (
    ConfigurationError,
    HostedZoneNotFoundError,
    KeystoneError,
    MissingConnectionStringError,
    TaskSizeError,
    UnresolvedSecretError,
)
from .network import NetworkTopology, build_network
from .database import ConnectionDescriptor, DatabaseConfig, build_database
from .compute import ComputeConfig, ComputeResources, build_compute
from .secrets import SecretRef
from .stack import KeystoneDeployment, compose_deployment, compose_into
from .zones import Route53ZoneLookup, lookup_zone_from_context, request_certificate

__all__ = [
    # Config
    'DeploymentTarget',
    'KeystoneProps',
    'ScalingPolicy',
    # Errors
    'KeystoneError',
    'ConfigurationError',
    'TaskSizeError',
    'HostedZoneNotFoundError',
    'UnresolvedSecretError',
    'MissingConnectionStringError',
    # Components
    'NetworkTopology',
    'build_network',
    'ConnectionDescriptor',
    'DatabaseConfig',
    'build_database',
    'ComputeConfig',
    'ComputeResources',
    'build_compute',
    'SecretRef',
    'KeystoneDeployment',
    'compose_deployment',
    'compose_into',
    'Route53ZoneLookup',
    'lookup_zone_from_context',
    'request_certificate',
]
