"""
Tests for the top-level Keystone composition.
"""

import json

import pytest
from aws_cdk import App, Stack, aws_route53 as route53
from aws_cdk.assertions import Match, Template

from conftest import ACCOUNT, REGION, subnets_by_type
from keystone_infra import (
    ConfigurationError,
    DeploymentTarget,
    HostedZoneNotFoundError,
    KeystoneProps,
    compose_deployment,
    compose_into,
)


def no_zone(scope, construct_id, domain_name):
    return None


def fake_zone(scope, construct_id, domain_name):
    return route53.HostedZone.from_hosted_zone_attributes(
        scope, construct_id, hosted_zone_id='Z0123456789ABCDEFGHIJ', zone_name=domain_name,
    )


class TestProps:

    def test_cpu_and_private_load_balancer(self, synth):
        props = KeystoneProps(cpu=512, public_load_balancer=False)
        _, template = synth(props)

        template.has_resource_properties('AWS::ECS::TaskDefinition', {
            'Cpu': str(props.cpu),
        })
        template.has_resource_properties('AWS::EC2::Subnet', {
            'MapPublicIpOnLaunch': props.public_load_balancer,
        })
        public = subnets_by_type(template, 'Public')
        assert all(p['MapPublicIpOnLaunch'] is False for p in public.values())

    def test_invalid_props_produce_no_stack(self, app):
        with pytest.raises(ConfigurationError) as excinfo:
            compose_deployment(app, 'Keystone', KeystoneProps(cpu=512, memory_limit_mib=512))

        fields = [error['field'] for error in excinfo.value.details['errors']]
        assert fields == ['memoryLimitMiB']
        assert app.node.try_find_child('Keystone') is None
        assert app.synth().stacks == []

    def test_all_errors_reported_together(self, app):
        props = KeystoneProps(cpu=300, desired_count=0, max_azs=0)

        with pytest.raises(ConfigurationError) as excinfo:
            compose_deployment(app, 'Keystone', props)

        fields = {error['field'] for error in excinfo.value.details['errors']}
        assert fields == {'cpu', 'desiredCount', 'maxAzs'}


class TestCustomDomain:

    def test_missing_zone_produces_no_stack(self, app):
        with pytest.raises(HostedZoneNotFoundError) as excinfo:
            compose_deployment(
                app,
                'Keystone',
                KeystoneProps(domain_name='cms.example.com'),
                zone_lookup=no_zone,
            )

        assert excinfo.value.code == 'HOSTED_ZONE_NOT_FOUND'
        assert app.node.try_find_child('Keystone') is None
        assert app.synth().stacks == []

    def test_context_lookup_requires_concrete_environment(self, app):
        with pytest.raises(ConfigurationError):
            compose_deployment(app, 'Keystone', KeystoneProps(domain_name='cms.example.com'))

        assert app.node.try_find_child('Keystone') is None

    def test_invalid_domain_name(self, app):
        with pytest.raises(ConfigurationError) as excinfo:
            compose_deployment(app, 'Keystone', KeystoneProps(domain_name='not a domain'))

        assert excinfo.value.details['errors'][0]['field'] == 'domainName'


class TestStack:

    def test_environment_from_target(self, app):
        deployment = compose_deployment(
            app, 'Keystone', target=DeploymentTarget(account=ACCOUNT, region=REGION),
        )

        assert deployment.stack.account == ACCOUNT
        assert deployment.stack.region == REGION

    def test_tags(self, synth):
        _, template = synth(env_name='prod')

        template.has_resource_properties('AWS::EC2::VPC', {
            'Tags': Match.array_with([
                {'Key': 'Environment', 'Value': 'prod'},
                {'Key': 'ManagedBy', 'Value': 'CDK'},
                {'Key': 'Service', 'Value': 'keystone'},
            ]),
        })

    def test_outputs(self, synth):
        _, template = synth()

        outputs = template.find_outputs('*')
        for name in ('DatabaseEndpoint', 'DatabaseSecretArn', 'SessionSecretArn'):
            assert name in outputs
        assert outputs['SessionSecretArn']['Export'] == {'Name': 'Keystone-session-secret-arn'}

    def test_no_literal_secrets_in_template(self, synth):
        deployment, template = synth()

        body = json.dumps(template.to_json())
        assert 'SESSION_SECRET' in body
        assert '{{resolve:secretsmanager:' in body
        assert deployment.database.password.field == 'password'

    def test_synth_is_logged(self, synth, capsys):
        synth(env_name='staging')

        lines = capsys.readouterr().out.splitlines()
        events = [json.loads(line)['event'] for line in lines if line.startswith('{')]
        assert events[0] == 'synth_start'
        assert events[-1] == 'synth_complete'
        assert events.count('component_declared') == 3

    def test_plain_http_is_logged(self, synth, capsys):
        synth()

        lines = capsys.readouterr().out.splitlines()
        entries = [json.loads(line) for line in lines if line.startswith('{')]
        (info,) = [entry for entry in entries if entry['event'] == 'info']
        assert info['listenerPort'] == 80

    def test_custom_domain_is_not_logged_as_plain_http(self, synth, capsys):
        synth(KeystoneProps(domain_name='cms.example.com'), zone_lookup=fake_zone)

        lines = capsys.readouterr().out.splitlines()
        events = [json.loads(line)['event'] for line in lines if line.startswith('{')]
        assert 'info' not in events
        assert events.count('component_declared') == 4


def test_compose_into_existing_stack():
    stack = Stack(App(), 'Platform')

    deployment = compose_into(stack, KeystoneProps(cpu=1024, memory_limit_mib=2048))
    template = Template.from_stack(stack)

    assert deployment.stack is stack
    template.has_resource_properties('AWS::ECS::TaskDefinition', {
        'Cpu': '1024',
        'Memory': '2048',
    })
    template.resource_count_is('AWS::RDS::DBCluster', 1)
