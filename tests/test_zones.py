"""
Tests for the hosted zone lookups.

The Route53 lookup is exercised against a stubbed boto3 client.
"""

import boto3
import pytest
from aws_cdk import App, Environment, Stack
from botocore.stub import Stubber

from conftest import ACCOUNT, REGION
from keystone_infra import ConfigurationError, Route53ZoneLookup, lookup_zone_from_context


DOMAIN = 'cms.example.com'


def _hosted_zone(zone_id, name, private=False):
    return {
        'Id': f'/hostedzone/{zone_id}',
        'Name': name,
        'CallerReference': f'ref-{zone_id}',
        'Config': {'PrivateZone': private},
    }


@pytest.fixture
def route53_client():
    return boto3.client(
        'route53',
        region_name='us-east-1',
        aws_access_key_id='testing',
        aws_secret_access_key='testing',
    )


def _stub_zones(client, zones):
    stubber = Stubber(client)
    stubber.add_response(
        'list_hosted_zones_by_name',
        {'HostedZones': zones, 'IsTruncated': False, 'MaxItems': '10'},
        {'DNSName': DOMAIN, 'MaxItems': '10'},
    )
    return stubber


class TestRoute53ZoneLookup:

    def test_exact_match(self, route53_client):
        with _stub_zones(route53_client, [_hosted_zone('Z111', 'cms.example.com.')]) as stubber:
            zone_id = Route53ZoneLookup(route53_client).find_zone_id(DOMAIN)
            stubber.assert_no_pending_responses()

        assert zone_id == 'Z111'

    def test_returns_imported_zone(self, route53_client):
        stack = Stack(App(), 'Zones')

        with _stub_zones(route53_client, [_hosted_zone('Z111', 'cms.example.com.')]):
            zone = Route53ZoneLookup(route53_client)(stack, 'KeystoneZone', DOMAIN)

        assert zone.hosted_zone_id == 'Z111'
        assert zone.zone_name == DOMAIN

    def test_no_matching_zone(self, route53_client):
        stack = Stack(App(), 'Zones')
        zones = [_hosted_zone('Z222', 'example.org.')]

        with _stub_zones(route53_client, zones):
            zone = Route53ZoneLookup(route53_client)(stack, 'KeystoneZone', DOMAIN)

        assert zone is None
        assert stack.node.try_find_child('KeystoneZone') is None

    def test_private_zones_are_skipped(self, route53_client):
        zones = [
            _hosted_zone('Z333', 'cms.example.com.', private=True),
            _hosted_zone('Z444', 'cms.example.com.'),
        ]

        with _stub_zones(route53_client, zones):
            zone_id = Route53ZoneLookup(route53_client).find_zone_id(DOMAIN)

        assert zone_id == 'Z444'

    def test_trailing_dot_and_case(self, route53_client):
        with _stub_zones(route53_client, [_hosted_zone('Z111', 'CMS.example.com.')]):
            zone_id = Route53ZoneLookup(route53_client).find_zone_id('cms.example.com.')

        assert zone_id == 'Z111'


class TestContextLookup:

    def test_requires_concrete_environment(self):
        stack = Stack(App(), 'Zones')

        with pytest.raises(ConfigurationError):
            lookup_zone_from_context(stack, 'KeystoneZone', DOMAIN)

    def test_concrete_environment(self):
        stack = Stack(App(), 'Zones', env=Environment(account=ACCOUNT, region=REGION))

        zone = lookup_zone_from_context(stack, 'KeystoneZone', DOMAIN)

        assert zone is not None
        assert zone.zone_name == DOMAIN
