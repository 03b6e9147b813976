"""
Tests for deployment configuration records and defaulting.
"""

from aws_cdk import aws_rds as rds

from keystone_infra import DeploymentTarget, KeystoneProps, ScalingPolicy


class TestKeystoneProps:

    def test_documented_defaults(self):
        resolved = KeystoneProps().resolve()

        assert resolved.domain_name is None
        assert resolved.cpu == 512
        assert resolved.memory_limit_mib == 1024
        assert resolved.desired_count == 1
        assert resolved.public_load_balancer is True
        assert resolved.aurora_scaling == ScalingPolicy(auto_pause_minutes=10)
        assert resolved.max_azs == 3

    def test_explicit_values_win(self):
        scaling = ScalingPolicy(auto_pause_minutes=60, max_capacity=4)
        resolved = KeystoneProps(
            domain_name='cms.example.com',
            cpu=1024,
            memory_limit_mib=4096,
            desired_count=2,
            public_load_balancer=False,
            aurora_scaling=scaling,
            max_azs=2,
        ).resolve()

        assert resolved.domain_name == 'cms.example.com'
        assert (resolved.cpu, resolved.memory_limit_mib, resolved.desired_count) == (1024, 4096, 2)
        assert resolved.public_load_balancer is False
        assert resolved.aurora_scaling is scaling
        assert resolved.max_azs == 2

    def test_falsy_explicit_values_are_kept(self):
        resolved = KeystoneProps(public_load_balancer=False, desired_count=0).resolve()

        assert resolved.public_load_balancer is False
        assert resolved.desired_count == 0

    def test_empty_domain_is_no_domain(self):
        assert KeystoneProps(domain_name='').resolve().domain_name is None


class TestScalingPolicy:

    def test_provider_default_capacities(self):
        options = ScalingPolicy().to_cdk()

        assert options.auto_pause.to_minutes() == 10
        assert options.min_capacity is None
        assert options.max_capacity is None

    def test_capacity_units(self):
        options = ScalingPolicy(min_capacity=2, max_capacity=16).to_cdk()

        assert options.min_capacity == rds.AuroraCapacityUnit.ACU_2
        assert options.max_capacity == rds.AuroraCapacityUnit.ACU_16


class TestDeploymentTarget:

    def test_explicit_variables(self):
        target = DeploymentTarget.from_environ({
            'AWS_ACCOUNT': '111111111111',
            'AWS_REGION': 'eu-west-1',
            'CDK_DEFAULT_ACCOUNT': '222222222222',
            'CDK_DEFAULT_REGION': 'us-east-1',
        })

        assert target == DeploymentTarget(account='111111111111', region='eu-west-1')

    def test_cdk_defaults_fallback(self):
        target = DeploymentTarget.from_environ({
            'CDK_DEFAULT_ACCOUNT': '222222222222',
            'CDK_DEFAULT_REGION': 'us-east-1',
        })

        assert target.account == '222222222222'
        assert target.region == 'us-east-1'
        assert target.is_concrete

    def test_environment_agnostic(self):
        target = DeploymentTarget.from_environ({'AWS_REGION': 'us-east-1'})

        assert not target.is_concrete
        assert target.to_environment() is None

    def test_to_environment(self):
        environment = DeploymentTarget(account='111111111111', region='eu-west-1').to_environment()

        assert environment.account == '111111111111'
        assert environment.region == 'eu-west-1'
