#!/usr/bin/env python3
"""
CDK Application Entry Point.

This is the main entry point for the CDK application. It creates the Keystone
deployment stack for the selected environment.

Usage:
    # Synthesize the CloudFormation template
    cdk synth

    # Deploy the development environment
    cdk deploy keystone-dev-stack

    # Deploy with a custom domain (hosted zone must already exist)
    DOMAIN_NAME=cms.example.com cdk deploy keystone-dev-stack

Environment Configuration:
    This is the only place the process environment is read:
    - AWS_ACCOUNT / AWS_REGION: target account and region
      (fall back to CDK_DEFAULT_ACCOUNT / CDK_DEFAULT_REGION)
    - DOMAIN_NAME: optional custom domain
    - KEYSTONE_ENV: environment name, used in the stack name (default: dev)
    - KEYSTONE_ZONE_LOOKUP: 'context' (default) or 'route53'
"""

import os
import sys

from aws_cdk import App

from keystone_infra import (
    ConfigurationError,
    DeploymentTarget,
    KeystoneProps,
    Route53ZoneLookup,
    compose_deployment,
    lookup_zone_from_context,
)
from keystone_infra.logger import create_logger


app = App()
logger = create_logger('keystone-synth')

target = DeploymentTarget.from_environ(os.environ)
env_name = os.environ.get('KEYSTONE_ENV', 'dev')

# Route53 lookup queries the API directly instead of cdk.context.json
if os.environ.get('KEYSTONE_ZONE_LOOKUP') == 'route53':
    zone_lookup = Route53ZoneLookup()
else:
    zone_lookup = lookup_zone_from_context

try:
    compose_deployment(
        app,
        f'keystone-{env_name}-stack',
        KeystoneProps(domain_name=os.environ.get('DOMAIN_NAME') or None),
        target=target,
        env_name=env_name,
        zone_lookup=zone_lookup,
        logger=logger,
        description=f'Keystone CMS - {env_name} environment',
    )
except ConfigurationError:
    # already logged by compose_deployment
    sys.exit(1)

app.synth()
