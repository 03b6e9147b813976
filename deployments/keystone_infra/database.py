"""
Aurora Serverless database for the Keystone deployment.

Provisions an auto-scaling, auto-pausing Aurora PostgreSQL cluster in the
isolated subnet tier and exposes the connection URL Keystone reads from
DATABASE_URL.

Credentials are always generated by Secrets Manager. The password only ever
appears in the rendered template as a `{{resolve:secretsmanager:...}}` dynamic
reference, resolved by CloudFormation at deploy time.

Known limitation: the engine parameter group is fixed to
`default.aurora-postgresql10`.
"""

from dataclasses import dataclass, field
from typing import Optional

from aws_cdk import aws_rds as rds
from constructs import Construct

from .config import ScalingPolicy
from .errors import ConfigurationError, UnresolvedSecretError
from .network import DATABASE_PORT, NetworkTopology
from .secrets import SecretRef
from .validation import validate_scaling


DATABASE_USERNAME = 'keystone'
DEFAULT_DATABASE_NAME = 'keystone'
PARAMETER_GROUP_NAME = 'default.aurora-postgresql10'
CONNECT_TIMEOUT_SECONDS = 300


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Components of the PostgreSQL connection URL.

    The password must be a SecretRef; a literal string is rejected.
    """

    username: str
    password: SecretRef
    host: str
    port: int
    database_name: str
    scheme: str = 'postgres'
    timeout_seconds: int = CONNECT_TIMEOUT_SECONDS

    def __post_init__(self):
        if not isinstance(self.password, SecretRef):
            raise ConfigurationError(
                'Connection password must be a secret reference, not a literal',
                {'field': 'password'},
            )

    def render(self) -> str:
        """
        Join the components into a single URL string.

        Host and password are unresolved tokens, so the result is rendered by
        CloudFormation as an Fn::Join.
        """
        return ''.join([
            f'{self.scheme}://', self.username, ':', self.password.dynamic_reference,
            '@', self.host, ':', str(self.port),
            '/', self.database_name, f'?connect_timeout={self.timeout_seconds}',
        ])


@dataclass(frozen=True)
class DatabaseConfig:
    """
    The declared database and the values derived from it.

    Attributes:
        cluster: The Aurora Serverless cluster
        username: Database master username
        database_name: Name of the default database
        hostname: Cluster endpoint hostname (token)
        port: PostgreSQL port
        scaling: Scaling policy applied to the cluster
    """

    cluster: rds.ServerlessCluster
    username: str
    database_name: str
    hostname: str
    port: int
    scaling: ScalingPolicy
    _descriptor: Optional[ConnectionDescriptor] = field(default=None, init=False, repr=False, compare=False)

    @property
    def password(self) -> SecretRef:
        """
        Reference to the generated password.

        Raises:
            UnresolvedSecretError: If the cluster has no generated credential secret
        """
        if self.cluster.secret is None:
            raise UnresolvedSecretError(
                'Database credential secret does not exist; '
                'the connection string cannot be rendered'
            )
        return SecretRef(self.cluster.secret, 'password')

    def connection_descriptor(self) -> ConnectionDescriptor:
        if self._descriptor is None:
            # cached so repeat renders reuse the same password token
            object.__setattr__(self, '_descriptor', ConnectionDescriptor(
                username=self.username,
                password=self.password,
                host=self.hostname,
                port=self.port,
                database_name=self.database_name,
            ))
        return self._descriptor

    def render_connection_string(self) -> str:
        """
        Render the PostgreSQL connection URL.

        Returns the same string on every call:
        postgres://<user>:<password-ref>@<host>:5432/<db>?connect_timeout=300
        """
        return self.connection_descriptor().render()


def build_database(
    scope: Construct,
    construct_id: str,
    network: NetworkTopology,
    database_name: str = DEFAULT_DATABASE_NAME,
    scaling: Optional[ScalingPolicy] = None,
) -> DatabaseConfig:
    """
    Declare the Aurora Serverless cluster in the isolated tier.

    Args:
        scope: Parent construct (usually the stack)
        construct_id: ID of the database fragment
        network: Declared network topology
        database_name: Name of the default database
        scaling: Scaling policy (default: pause after 10 idle minutes)

    Returns:
        DatabaseConfig for the declared cluster

    Raises:
        ConfigurationError: If the scaling policy is not accepted by Aurora Serverless
    """
    scaling = scaling or ScalingPolicy()
    errors = validate_scaling(scaling)
    if errors:
        raise ConfigurationError.from_errors('Invalid Aurora scaling policy', errors)

    fragment = Construct(scope, construct_id)

    # password generated and stored by Secrets Manager
    credentials = rds.Credentials.from_generated_secret(DATABASE_USERNAME)

    cluster = rds.ServerlessCluster(
        fragment,
        'KeystoneDatabase',
        engine=rds.DatabaseClusterEngine.AURORA_POSTGRESQL,
        parameter_group=rds.ParameterGroup.from_parameter_group_name(
            fragment, 'ParameterGroup', PARAMETER_GROUP_NAME
        ),
        vpc=network.vpc,
        scaling=scaling.to_cdk(),
        credentials=credentials,
        subnet_group=network.database_subnet_group,
        default_database_name=database_name,
        security_groups=[network.database_security_group],
    )

    return DatabaseConfig(
        cluster=cluster,
        username=credentials.username,
        database_name=database_name,
        hostname=cluster.cluster_endpoint.hostname,
        port=DATABASE_PORT,
        scaling=scaling,
    )
