"""
Hosted zone lookup and certificate collaborators.

A zone lookup is any callable `(scope, construct_id, domain_name)` that returns
an IHostedZone, or None when it can tell that no zone exists for the domain.
Two lookups are provided:

- `lookup_zone_from_context`: the CDK context provider (`cdk synth` resolves the
  zone and caches it in cdk.context.json). Requires a concrete account/region.
  It never returns None: a missing zone surfaces as the CDK CLI's context
  provider error during `cdk synth`, not as HostedZoneNotFoundError.
- `Route53ZoneLookup`: queries Route53 directly through boto3 at synth time and
  returns None when no public zone matches, which the composition reports as
  HostedZoneNotFoundError.
"""

from typing import Any, Callable, Optional

import boto3
from aws_cdk import Stack, Token, aws_certificatemanager as acm, aws_route53 as route53
from constructs import Construct

from .errors import ConfigurationError


ZoneLookup = Callable[[Construct, str, str], Optional[route53.IHostedZone]]


def lookup_zone_from_context(
    scope: Construct,
    construct_id: str,
    domain_name: str,
) -> route53.IHostedZone:
    """
    Look up the hosted zone named `domain_name` through the CDK context provider.

    Until `cdk synth` has filled the context, CDK returns a dummy zone; a zone
    that does not exist is reported by the CLI, not here.

    Raises:
        ConfigurationError: If the enclosing stack has no concrete account/region
    """
    stack = Stack.of(scope)
    if Token.is_unresolved(stack.account) or Token.is_unresolved(stack.region):
        raise ConfigurationError(
            'Hosted zone lookup requires an explicit account and region',
            {'domainName': domain_name},
        )
    return route53.HostedZone.from_lookup(scope, construct_id, domain_name=domain_name)


class Route53ZoneLookup:
    """
    Hosted zone lookup backed by the Route53 API.

    Matches the public zone whose name equals the requested domain exactly.

    Usage:
        lookup = Route53ZoneLookup()
        zone = lookup(stack, 'KeystoneZone', 'cms.example.com')
    """

    def __init__(self, client: Any = None):
        """
        Args:
            client: boto3 Route53 client (created on first use when omitted)
        """
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = boto3.client('route53')
        return self._client

    def find_zone_id(self, domain_name: str) -> Optional[str]:
        """
        Return the hosted zone ID for `domain_name`, or None if there is none.
        """
        wanted = domain_name.rstrip('.').lower()
        response = self.client.list_hosted_zones_by_name(DNSName=wanted, MaxItems='10')

        for zone in response.get('HostedZones', []):
            if zone.get('Config', {}).get('PrivateZone'):
                continue
            if zone['Name'].rstrip('.').lower() == wanted:
                # IDs come back as /hostedzone/Z123...
                return zone['Id'].split('/')[-1]

        return None

    def __call__(
        self,
        scope: Construct,
        construct_id: str,
        domain_name: str,
    ) -> Optional[route53.IHostedZone]:
        zone_id = self.find_zone_id(domain_name)
        if zone_id is None:
            return None
        return route53.HostedZone.from_hosted_zone_attributes(
            scope,
            construct_id,
            hosted_zone_id=zone_id,
            zone_name=domain_name.rstrip('.'),
        )


def request_certificate(
    scope: Construct,
    construct_id: str,
    domain_name: str,
    zone: route53.IHostedZone,
) -> acm.ICertificate:
    """
    Declare an ACM certificate validated through DNS records in `zone`.
    """
    return acm.Certificate(
        scope,
        construct_id,
        domain_name=domain_name,
        validation=acm.CertificateValidation.from_dns(zone),
    )
