"""
Network topology for the Keystone deployment.

Defines the VPC and the three subnet tiers replicated across each availability
zone, plus the database access rules.

Architecture:
- public: load balancer, reachable from the internet
- private: Fargate tasks, outbound internet through NAT, no inbound
- isolated: Aurora, no route in or out of the VPC

The only path into the isolated tier is TCP 5432 from each private subnet CIDR.
"""

from dataclasses import dataclass
from typing import List, Optional

from aws_cdk import aws_ec2 as ec2, aws_rds as rds
from constructs import Construct

from .config import MAX_AVAILABILITY_ZONES
from .errors import ConfigurationError


DATABASE_PORT = 5432

PUBLIC_SUBNET_NAME = 'public'
PRIVATE_SUBNET_NAME = 'private'
ISOLATED_SUBNET_NAME = 'isolated'


@dataclass(frozen=True)
class NetworkTopology:
    """
    Read-only handle on the declared network, shared by the database and
    compute fragments.

    Attributes:
        vpc: The VPC for the whole deployment
        public_subnets: Load balancer subnets
        private_subnets: Fargate task subnets
        isolated_subnets: Aurora subnets
        database_subnet_group: Subnet group over the isolated subnets
        database_security_group: Access rule list for the isolated tier
    """

    vpc: ec2.Vpc
    public_subnets: List[ec2.ISubnet]
    private_subnets: List[ec2.ISubnet]
    isolated_subnets: List[ec2.ISubnet]
    database_subnet_group: rds.SubnetGroup
    database_security_group: ec2.SecurityGroup


def build_network(
    scope: Construct,
    construct_id: str,
    max_azs: Optional[int] = None,
    map_public_ip_on_launch: bool = True,
) -> NetworkTopology:
    """
    Declare the VPC, subnet tiers and database access rules.

    Args:
        scope: Parent construct (usually the stack)
        construct_id: ID of the network fragment
        max_azs: Availability zones to span, capped at 3 (default: all, capped)
        map_public_ip_on_launch: Auto-assign public IPs in the public tier

    Returns:
        NetworkTopology for the declared resources

    Raises:
        ConfigurationError: If max_azs is less than 1
    """
    if max_azs is not None and max_azs < 1:
        raise ConfigurationError(
            'Availability zone count must be at least 1',
            {'maxAzs': max_azs},
        )
    az_count = MAX_AVAILABILITY_ZONES if max_azs is None else min(max_azs, MAX_AVAILABILITY_ZONES)

    fragment = Construct(scope, construct_id)

    vpc = ec2.Vpc(
        fragment,
        'KeystoneVPC',
        max_azs=az_count,
        subnet_configuration=[
            # load balancer, reachable from the internet
            ec2.SubnetConfiguration(
                name=PUBLIC_SUBNET_NAME,
                subnet_type=ec2.SubnetType.PUBLIC,
                map_public_ip_on_launch=map_public_ip_on_launch,
            ),
            # fargate tasks, reachable from the load balancer
            ec2.SubnetConfiguration(
                name=PRIVATE_SUBNET_NAME,
                subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
            ),
            # aurora, reachable from the private tier only
            ec2.SubnetConfiguration(
                name=ISOLATED_SUBNET_NAME,
                subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
            ),
        ],
    )

    subnet_group = rds.SubnetGroup(
        fragment,
        'KeystoneDbSubnet',
        description='Subnet group for Aurora cluster',
        vpc=vpc,
        vpc_subnets=ec2.SubnetSelection(subnets=vpc.isolated_subnets),
    )

    security_group = ec2.SecurityGroup(
        fragment,
        'KeystoneDbSg',
        vpc=vpc,
        description='Keystone database access from the private tier',
    )
    for subnet in vpc.private_subnets:
        security_group.add_ingress_rule(
            ec2.Peer.ipv4(subnet.ipv4_cidr_block),
            ec2.Port.tcp(DATABASE_PORT),
            f'Postgres from {subnet.node.id}',
        )

    return NetworkTopology(
        vpc=vpc,
        public_subnets=list(vpc.public_subnets),
        private_subnets=list(vpc.private_subnets),
        isolated_subnets=list(vpc.isolated_subnets),
        database_subnet_group=subnet_group,
        database_security_group=security_group,
    )
