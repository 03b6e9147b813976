"""
Fargate compute for the Keystone deployment.

Builds the Keystone container image, and runs it as a load-balanced, auto-healing
Fargate service in the private subnet tier.

Architecture:
- Docker image asset built from a local build context
- ECS cluster in the deployment VPC
- Generated session secret in Secrets Manager, bound as SESSION_SECRET
- Application Load Balancer -> Fargate tasks on container port 3000
- Target group health check on /_healthcheck, 300s grace period for cold starts
- Optional custom domain: ACM certificate, HTTPS listener on 443 and an
  HTTP -> HTTPS redirect on 80, Route53 alias record

Usage Example:
    network = build_network(stack, 'KeystoneNetwork')
    database = build_database(stack, 'KeystoneDatabase', network)
    compute = build_compute(
        stack,
        'KeystoneCompute',
        network,
        database.render_connection_string(),
        ComputeConfig(cpu=1024, memory_limit_mib=2048),
    )
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from aws_cdk import (
    Duration,
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecr_assets as ecr_assets,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_secretsmanager as secretsmanager,
)
from constructs import Construct

from .config import DEFAULT_CPU, DEFAULT_DESIRED_COUNT, DEFAULT_MEMORY_LIMIT_MIB
from .errors import (
    ConfigurationError,
    HostedZoneNotFoundError,
    MissingConnectionStringError,
    TaskSizeError,
)
from .network import NetworkTopology
from .secrets import SecretRef
from .validation import is_valid_task_size


# Dockerfile for the Keystone app ships with this package
DEFAULT_BUILD_CONTEXT = Path(__file__).parent / 'image'

CONTAINER_PORT = 3000
HEALTH_CHECK_PATH = '/_healthcheck'
HEALTH_CHECK_GRACE_PERIOD_SECONDS = 300
SESSION_SECRET_NAME = 'KeystoneSession'
SESSION_SECRET_LENGTH = 32

HTTP_PORT = 80
HTTPS_PORT = 443


@dataclass(frozen=True)
class ComputeConfig:
    """
    Settings for the Fargate service.

    Attributes:
        cpu: Task cpu units (default 512)
        memory_limit_mib: Task memory in MiB (default 1024)
        desired_count: Number of running tasks (default 1)
        public_load_balancer: Internet-facing load balancer (default True)
        domain_name: Custom domain for the service
        zone: Hosted zone for domain_name, required when domain_name is set
        certificate: TLS certificate; switches the listener to HTTPS
        build_context: Directory containing the Keystone Dockerfile
    """

    cpu: int = DEFAULT_CPU
    memory_limit_mib: int = DEFAULT_MEMORY_LIMIT_MIB
    desired_count: int = DEFAULT_DESIRED_COUNT
    public_load_balancer: bool = True
    domain_name: Optional[str] = None
    zone: Optional[route53.IHostedZone] = None
    certificate: Optional[acm.ICertificate] = None
    build_context: Path = DEFAULT_BUILD_CONTEXT
    container_port: int = CONTAINER_PORT
    health_check_path: str = HEALTH_CHECK_PATH
    health_check_grace_period_seconds: int = HEALTH_CHECK_GRACE_PERIOD_SECONDS
    session_secret_name: str = SESSION_SECRET_NAME
    session_secret_length: int = SESSION_SECRET_LENGTH

    @property
    def listener_port(self) -> int:
        return HTTPS_PORT if self.certificate is not None else HTTP_PORT

    @property
    def redirect_http(self) -> bool:
        return self.certificate is not None

    def validate(self) -> None:
        """
        Fail fast on an invalid configuration, before any construct is declared.

        Raises:
            TaskSizeError: cpu/memory is not a Fargate task size
            HostedZoneNotFoundError: domain_name is set without a zone
            ConfigurationError: desired_count is below 1
        """
        if not is_valid_task_size(self.cpu, self.memory_limit_mib):
            raise TaskSizeError(self.cpu, self.memory_limit_mib)
        if self.desired_count < 1:
            raise ConfigurationError(
                'Desired count must be at least 1',
                {'desiredCount': self.desired_count},
            )
        if self.domain_name and self.zone is None:
            raise HostedZoneNotFoundError(self.domain_name)


@dataclass(frozen=True)
class ComputeResources:
    """
    Public outputs of the compute fragment.

    Attributes:
        cluster: The ECS cluster
        service: The load-balanced Fargate service
        session_secret: Generated SESSION_SECRET
        image: The Keystone image asset
    """

    cluster: ecs.Cluster
    service: ecs_patterns.ApplicationLoadBalancedFargateService
    session_secret: secretsmanager.Secret
    image: ecr_assets.DockerImageAsset


def build_compute(
    scope: Construct,
    construct_id: str,
    network: NetworkTopology,
    connection_string: Optional[str],
    config: Optional[ComputeConfig] = None,
) -> ComputeResources:
    """
    Declare the Keystone image, cluster, session secret and Fargate service.

    Args:
        scope: Parent construct (usually the stack)
        construct_id: ID of the compute fragment
        network: Declared network topology
        connection_string: PostgreSQL URL passed to Keystone as DATABASE_URL
        config: Service settings (defaults apply when omitted)

    Returns:
        ComputeResources for the declared service

    Raises:
        MissingConnectionStringError: connection_string is empty
        ConfigurationError: config is invalid (see ComputeConfig.validate)
    """
    config = config or ComputeConfig()
    if not connection_string:
        raise MissingConnectionStringError()
    config.validate()

    fragment = Construct(scope, construct_id)

    # 1. Docker image
    image = ecr_assets.DockerImageAsset(
        fragment,
        'KeystoneBuild',
        directory=str(config.build_context),
    )

    # 2. ECS cluster
    cluster = ecs.Cluster(fragment, 'KeystoneCluster', vpc=network.vpc)

    # 3. Session secret, referenced by the task, never read inline
    session_secret = secretsmanager.Secret(
        fragment,
        'SessionSecret',
        secret_name=config.session_secret_name,
        generate_secret_string=secretsmanager.SecretStringGenerator(
            password_length=config.session_secret_length,
        ),
    )

    task_image = ecs_patterns.ApplicationLoadBalancedTaskImageOptions(
        image=ecs.ContainerImage.from_docker_image_asset(image),
        # port exposed by the Keystone Dockerfile
        container_port=config.container_port,
        secrets={
            'SESSION_SECRET': SecretRef(session_secret).to_ecs_secret(),
        },
        environment={
            'DATABASE_URL': connection_string,
        },
    )

    # 4. Fargate service behind an ALB
    service = ecs_patterns.ApplicationLoadBalancedFargateService(
        fragment,
        'KeystoneService',
        cluster=cluster,
        cpu=config.cpu,
        memory_limit_mib=config.memory_limit_mib,
        desired_count=config.desired_count,
        task_image_options=task_image,
        task_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
        public_load_balancer=config.public_load_balancer,
        health_check_grace_period=Duration.seconds(config.health_check_grace_period_seconds),
        # 5. optional domain and certificate
        domain_name=config.domain_name,
        domain_zone=config.zone,
        certificate=config.certificate,
        redirect_http=config.redirect_http,
        listener_port=config.listener_port,
        target_protocol=elbv2.ApplicationProtocol.HTTP,
    )

    service.target_group.configure_health_check(path=config.health_check_path)

    return ComputeResources(
        cluster=cluster,
        service=service,
        session_secret=session_secret,
        image=image,
    )
