#!/usr/bin/env python3
"""
CDK Application Entry Point.

Usage:
    # Synthesize CloudFormation templates
    cdk synth -c sourceEmail=no-reply@example.com

    # Deploy to development environment
    cdk deploy todo-auth-dev-stack -c sourceEmail=no-reply@example.com

Environment Configuration:
    Stacks can be configured with AWS account and region via environment variables:
    - CDK_DEFAULT_ACCOUNT: AWS account ID
    - CDK_DEFAULT_REGION: AWS region

    Context values:
    - sourceEmail: Verified SES identity for code emails (required)
    - tokenTtlHours: Bearer token lifetime (default 24)

Follows steering rules:
- Explicit over implicit (all configurations declared)
- Environment-specific naming
- Stack naming convention: <service>-<env>-stack
"""

import os
from aws_cdk import App, Environment

from todo_auth.auth_stack import TodoAuthStack


app = App()

account = os.environ.get('CDK_DEFAULT_ACCOUNT')
region = os.environ.get('CDK_DEFAULT_REGION')

env = None
if account and region:
    env = Environment(account=account, region=region)

source_email = app.node.try_get_context('sourceEmail') or os.environ.get('SOURCE_EMAIL', '')
token_ttl_hours = int(app.node.try_get_context('tokenTtlHours') or 24)

# Development Stack
dev_stack = TodoAuthStack(
    app,
    'todo-auth-dev-stack',
    env_name='dev',
    source_email=source_email,
    token_ttl_hours=token_ttl_hours,
    env=env,
    description='TODO Auth Service - Development Environment',
)

# Production Stack
# Uncomment when ready to deploy to production
# prod_stack = TodoAuthStack(
#     app,
#     'todo-auth-prod-stack',
#     env_name='prod',
#     source_email=source_email,
#     env=env,
#     description='TODO Auth Service - Production Environment',
# )

app.synth()
