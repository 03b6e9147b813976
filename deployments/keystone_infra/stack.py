"""
Keystone deployment composition.

This module wires the network, database and compute fragments into one
deployable stack. The fragments are declared by plain function calls in strict
order, each consuming the outputs of the previous ones:

    network -> database -> (hosted zone + certificate) -> compute

Stack naming convention: keystone-<env>-stack (e.g., keystone-prod-stack)

Usage Example:
    from aws_cdk import App
    from keystone_infra import DeploymentTarget, KeystoneProps, compose_deployment

    app = App()
    compose_deployment(
        app,
        'keystone-dev-stack',
        KeystoneProps(domain_name='cms.example.com'),
        target=DeploymentTarget(account='123456789012', region='eu-west-1'),
    )
    app.synth()
"""

from dataclasses import dataclass
from typing import Optional

from aws_cdk import (
    CfnOutput,
    Stack,
    Tags,
    aws_certificatemanager as acm,
    aws_route53 as route53,
)
from constructs import Construct

from .compute import ComputeConfig, ComputeResources, build_compute
from .config import DeploymentTarget, KeystoneProps, ResolvedProps
from .database import DatabaseConfig, build_database
from .errors import ConfigurationError, HostedZoneNotFoundError
from .logger import StructuredLogger, create_logger
from .network import NetworkTopology, build_network
from .validation import validate_props
from .zones import ZoneLookup, lookup_zone_from_context, request_certificate


@dataclass(frozen=True)
class KeystoneDeployment:
    """
    Everything declared for one Keystone deployment.

    Attributes:
        stack: Stack holding the resource graph
        network: Network topology
        database: Database config and connection URL
        compute: Fargate service resources
        zone: Hosted zone, when a custom domain is used
        certificate: TLS certificate, when a custom domain is used
    """

    stack: Stack
    network: NetworkTopology
    database: DatabaseConfig
    compute: ComputeResources
    zone: Optional[route53.IHostedZone] = None
    certificate: Optional[acm.ICertificate] = None


def _resolve_and_validate(props: Optional[KeystoneProps]) -> ResolvedProps:
    resolved = (props or KeystoneProps()).resolve()
    errors = validate_props(resolved)
    if errors:
        raise ConfigurationError.from_errors('Invalid deployment props', errors)
    return resolved


def compose_into(
    stack: Stack,
    props: Optional[KeystoneProps] = None,
    zone_lookup: ZoneLookup = lookup_zone_from_context,
    logger: Optional[StructuredLogger] = None,
) -> KeystoneDeployment:
    """
    Declare the Keystone resource graph into an existing stack.

    Args:
        stack: Stack to declare the resources in
        props: Deployment props (documented defaults apply to omitted fields)
        zone_lookup: Hosted zone lookup used when a domain name is given
        logger: Structured logger (a new one is created when omitted)

    Returns:
        KeystoneDeployment with the declared fragments

    Raises:
        ConfigurationError: Props are invalid, or the domain has no hosted zone
    """
    logger = logger or create_logger('keystone-synth')
    resolved = _resolve_and_validate(props)

    # 1. VPC, subnet tiers and database access rules
    network = build_network(
        stack,
        'KeystoneNetwork',
        max_azs=resolved.max_azs,
        map_public_ip_on_launch=resolved.public_load_balancer,
    )
    logger.log_component('network', 'KeystoneNetwork', maxAzs=resolved.max_azs)

    # 2. Aurora Serverless in the isolated tier
    database = build_database(
        stack,
        'KeystoneDatabase',
        network,
        scaling=resolved.aurora_scaling,
    )
    logger.log_component('database', 'KeystoneDatabase')

    # 3. Hosted zone must already exist for the certificate to validate
    zone = None
    certificate = None
    if resolved.domain_name:
        zone = zone_lookup(stack, 'KeystoneZone', resolved.domain_name)
        if zone is None:
            raise HostedZoneNotFoundError(resolved.domain_name)
        certificate = request_certificate(stack, 'KeystoneCert', resolved.domain_name, zone)
        logger.log_component('certificate', 'KeystoneCert', domainName=resolved.domain_name)
    else:
        logger.log_info('No custom domain, load balancer serves plain HTTP', listenerPort=80)

    # 4. Fargate service behind an ALB
    compute = build_compute(
        stack,
        'KeystoneCompute',
        network,
        database.render_connection_string(),
        ComputeConfig(
            cpu=resolved.cpu,
            memory_limit_mib=resolved.memory_limit_mib,
            desired_count=resolved.desired_count,
            public_load_balancer=resolved.public_load_balancer,
            domain_name=resolved.domain_name,
            zone=zone,
            certificate=certificate,
        ),
    )
    logger.log_component(
        'compute',
        'KeystoneCompute',
        cpu=resolved.cpu,
        memoryLimitMiB=resolved.memory_limit_mib,
        desiredCount=resolved.desired_count,
    )

    return KeystoneDeployment(
        stack=stack,
        network=network,
        database=database,
        compute=compute,
        zone=zone,
        certificate=certificate,
    )


def compose_deployment(
    scope: Construct,
    stack_id: str,
    props: Optional[KeystoneProps] = None,
    target: Optional[DeploymentTarget] = None,
    env_name: str = 'dev',
    zone_lookup: ZoneLookup = lookup_zone_from_context,
    logger: Optional[StructuredLogger] = None,
    **stack_kwargs
) -> KeystoneDeployment:
    """
    Create a tagged stack and declare the Keystone resource graph in it.

    If any configuration error is raised, the partially declared stack is
    removed from `scope` so nothing is synthesized for it.

    Args:
        scope: CDK app
        stack_id: Stack identifier (should follow keystone-<env>-stack)
        props: Deployment props
        target: Target account/region (environment-agnostic when omitted)
        env_name: Environment name (dev, staging, prod, etc.)
        zone_lookup: Hosted zone lookup used when a domain name is given
        logger: Structured logger (a new one is created when omitted)
        **stack_kwargs: Additional stack properties (description, etc.)
    """
    logger = logger or create_logger('keystone-synth')
    target = target or DeploymentTarget()
    logger.log_synth_start(
        stack_id,
        envName=env_name,
        account=target.account,
        region=target.region,
    )

    # invalid props never get as far as declaring a stack
    try:
        _resolve_and_validate(props)
    except ConfigurationError as error:
        logger.log_configuration_error(error.code, error.message, stackId=stack_id, details=error.details)
        raise

    stack = Stack(scope, stack_id, env=target.to_environment(), **stack_kwargs)

    Tags.of(stack).add('Service', 'keystone')
    Tags.of(stack).add('Environment', env_name)
    Tags.of(stack).add('ManagedBy', 'CDK')

    try:
        deployment = compose_into(stack, props, zone_lookup=zone_lookup, logger=logger)
    except ConfigurationError as error:
        logger.log_configuration_error(error.code, error.message, stackId=stack_id, details=error.details)
        scope.node.try_remove_child(stack_id)
        raise

    CfnOutput(
        stack,
        'DatabaseEndpoint',
        value=deployment.database.hostname,
        description='Aurora cluster endpoint hostname',
        export_name=f'{stack_id}-db-endpoint',
    )

    CfnOutput(
        stack,
        'DatabaseSecretArn',
        value=deployment.database.password.secret.secret_arn,
        description='Secrets Manager ARN of the generated database credentials',
        export_name=f'{stack_id}-db-secret-arn',
    )

    CfnOutput(
        stack,
        'SessionSecretArn',
        value=deployment.compute.session_secret.secret_arn,
        description='Secrets Manager ARN of the Keystone session secret',
        export_name=f'{stack_id}-session-secret-arn',
    )

    logger.log_synth_complete(stack_id)
    return deployment
