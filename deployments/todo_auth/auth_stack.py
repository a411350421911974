"""
TODO auth service CDK stack.

Stack naming convention: <service>-<env>-stack (e.g., todo-auth-prod-stack)

Architecture:
- One DynamoDB table for users and one-time codes
- Auth API Lambda behind a public REST API
- Token authorizer Lambda for the todo API to attach
- CloudFormation outputs for the endpoint, table and authorizer

The signing secret is an SSM SecureString created outside CloudFormation:

    aws ssm put-parameter --type SecureString \\
        --name /todo-auth/dev/jwt-secret --value "$(openssl rand -hex 32)"

Usage Example:
    from aws_cdk import App
    from todo_auth.auth_stack import TodoAuthStack

    app = App()
    TodoAuthStack(app, 'todo-auth-dev-stack', env_name='dev',
                  source_email='no-reply@example.com')
    app.synth()
"""

from typing import Optional

from aws_cdk import (
    aws_iam as iam,
    Stack,
    CfnOutput,
    Tags,
)
from constructs import Construct

from .table_construct import AuthTableConstruct
from .lambda_constructs import AuthLambdasConstruct
from .api_construct import AuthApiConstruct


class TodoAuthStack(Stack):
    """
    Main CDK stack for the TODO auth service.

    Attributes:
        table: DynamoDB table construct
        lambdas: Lambda functions construct
        api: API Gateway construct
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        env_name: str = 'dev',
        source_email: str = '',
        jwt_secret_parameter_name: Optional[str] = None,
        token_ttl_hours: int = 24,
        **kwargs
    ) -> None:
        """
        Initialize the TODO auth stack.

        Args:
            scope: CDK app scope
            construct_id: Stack identifier (should follow <service>-<env>-stack convention)
            env_name: Environment name (dev, staging, prod, etc.)
            source_email: Verified SES identity for code emails
            jwt_secret_parameter_name: SSM parameter name of the signing secret
                (default: /todo-auth/<env>/jwt-secret)
            token_ttl_hours: Bearer token lifetime
            **kwargs: Additional stack properties (env, description, etc.)
        """
        super().__init__(scope, construct_id, **kwargs)

        if not source_email:
            raise ValueError('source_email is required (cdk deploy -c sourceEmail=...)')

        self.env_name = env_name
        jwt_secret_parameter_name = jwt_secret_parameter_name or f'/todo-auth/{env_name}/jwt-secret'

        Tags.of(self).add('Service', 'todo-auth')
        Tags.of(self).add('Environment', env_name)
        Tags.of(self).add('ManagedBy', 'CDK')

        # 1. Table
        self.table = AuthTableConstruct(
            self,
            'Table',
            env_name=env_name,
        )

        # 2. Lambda functions
        self.lambdas = AuthLambdasConstruct(
            self,
            'Lambdas',
            table=self.table.table,
            env_name=env_name,
            jwt_secret_parameter_name=jwt_secret_parameter_name,
            source_email=source_email,
            token_ttl_hours=token_ttl_hours,
        )

        # 3. REST API
        self.api = AuthApiConstruct(
            self,
            'Api',
            api_lambda=self.lambdas.api_lambda,
            env_name=env_name,
        )

        # The todo API in this account may invoke the authorizer
        self.lambdas.authorizer_lambda.grant_invoke(
            iam.ServicePrincipal('apigateway.amazonaws.com')
        )

        CfnOutput(
            self,
            'ApiEndpointUrl',
            value=self.api.api.url,
            description='TODO auth API endpoint URL',
            export_name=f'{construct_id}-api-url',
        )

        CfnOutput(
            self,
            'AuthTableName',
            value=self.table.table.table_name,
            description='Auth DynamoDB table name',
            export_name=f'{construct_id}-table',
        )

        CfnOutput(
            self,
            'AuthorizerFunctionArn',
            value=self.lambdas.authorizer_lambda.function_arn,
            description='Token authorizer Lambda for the todo API',
            export_name=f'{construct_id}-authorizer-arn',
        )
