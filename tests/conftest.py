"""
Shared fixtures for the Keystone deployment tests.

Template tests synthesize a real stack with aws_cdk.assertions; nothing is
deployed and no AWS credentials are needed.
"""

import pytest
from aws_cdk import App
from aws_cdk.assertions import Template

from keystone_infra import compose_deployment


ACCOUNT = '123456789012'
REGION = 'eu-west-1'


@pytest.fixture
def app():
    return App()


@pytest.fixture
def synth(app):
    """
    Compose a deployment into `app` and return (deployment, template).
    """
    def _synth(props=None, **kwargs):
        deployment = compose_deployment(app, 'Keystone', props, **kwargs)
        return deployment, Template.from_stack(deployment.stack)
    return _synth


def subnets_by_type(template, subnet_type):
    """
    Return {logical_id: properties} for subnets tagged with `subnet_type`
    (Public, Private or Isolated).
    """
    found = {}
    for logical_id, resource in template.find_resources('AWS::EC2::Subnet').items():
        tags = {tag['Key']: tag['Value'] for tag in resource['Properties'].get('Tags', [])}
        if tags.get('aws-cdk:subnet-type') == subnet_type:
            found[logical_id] = resource['Properties']
    return found
