"""
Lambda function constructs for the TODO auth service.

Two functions share the auth_shared package (copied in by package_lambdas.py)
and a dependencies layer (built by create_lambda_layer.py):

1. todo-auth-api: every /auth/* route (signup, verify, login, resend-code,
   password forgot/reset)
2. todo-auth-authorizer: bearer token gate for the todo routes

Follows steering rules:
- Infrastructure definition only (no business logic)
- Explicit over implicit (all configurations declared)
- Least privilege IAM permissions
- Naming conventions: <service>-<capability>
"""

from typing import Dict

from aws_cdk import (
    aws_lambda as lambda_,
    aws_iam as iam,
    aws_dynamodb as dynamodb,
    Duration,
    Stack,
)
from constructs import Construct


class AuthLambdasConstruct(Construct):
    """
    Construct that creates the auth Lambda functions.

    Attributes:
        api_lambda: Auth API Lambda function
        authorizer_lambda: Token authorizer Lambda function
        dependencies_layer: Lambda Layer with python-ulid and PyJWT
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        table: dynamodb.Table,
        env_name: str,
        jwt_secret_parameter_name: str,
        source_email: str,
        token_ttl_hours: int = 24,
        **kwargs
    ) -> None:
        """
        Initialize Lambda functions construct.

        Args:
            scope: CDK construct scope
            construct_id: Unique construct identifier
            table: DynamoDB auth table
            env_name: Environment name (dev, prod, ...)
            jwt_secret_parameter_name: SSM SecureString holding the signing secret
            source_email: Verified SES identity codes are sent from
            token_ttl_hours: Bearer token lifetime
        """
        super().__init__(scope, construct_id, **kwargs)

        # Create Lambda Layer for dependencies (python-ulid, PyJWT)
        # Note: boto3 is already available in Lambda runtime
        self.dependencies_layer = lambda_.LayerVersion(
            self,
            'DependenciesLayer',
            code=lambda_.Code.from_asset('../lambda_layer'),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description='Python dependencies: python-ulid, PyJWT'
        )

        common_config = {
            'runtime': lambda_.Runtime.PYTHON_3_11,
            'memory_size': 512,  # MB
            'timeout': Duration.seconds(30),
            'tracing': lambda_.Tracing.ACTIVE,
            'layers': [self.dependencies_layer],
        }

        common_environment = {
            'JWT_SECRET_PARAMETER_NAME': jwt_secret_parameter_name,
            'ENVIRONMENT': env_name,
            'TOKEN_TTL_HOURS': str(token_ttl_hours),
            'SECRET_CACHE_TTL_SECONDS': '300',
            'METRICS_ENABLED': 'true',
        }

        secret_parameter_arn = Stack.of(self).format_arn(
            service='ssm',
            resource='parameter',
            resource_name=jwt_secret_parameter_name.lstrip('/'),
        )

        self.api_lambda = self._create_api_lambda(
            common_config,
            common_environment,
            table,
            source_email
        )

        self.authorizer_lambda = self._create_authorizer_lambda(
            common_config,
            common_environment
        )

        for fn in (self.api_lambda, self.authorizer_lambda):
            # Read the signing secret
            fn.add_to_role_policy(iam.PolicyStatement(
                actions=['ssm:GetParameter'],
                resources=[secret_parameter_arn],
            ))
            # Publish custom metrics (PutMetricData has no resource-level scoping)
            fn.add_to_role_policy(iam.PolicyStatement(
                actions=['cloudwatch:PutMetricData'],
                resources=['*'],
                conditions={'StringEquals': {'cloudwatch:namespace': 'TodoAuth'}},
            ))

    def _create_api_lambda(
        self,
        common_config: Dict,
        common_environment: Dict[str, str],
        table: dynamodb.Table,
        source_email: str
    ) -> lambda_.Function:
        """
        Create the auth API Lambda function.

        Operations: signup, verify, login, resend code, password reset
        Permissions: DynamoDB read/write, SES send, SSM read
        """
        fn = lambda_.Function(
            self,
            'AuthApiLambda',
            function_name='todo-auth-api',
            description='Email/password signup, verification and login',
            code=lambda_.Code.from_asset('../lambda/auth_api'),
            handler='handler.handler',
            environment={
                'TABLE_NAME': table.table_name,
                'SOURCE_EMAIL': source_email,
                **common_environment,
            },
            **common_config
        )

        table.grant_read_write_data(fn)

        fn.add_to_role_policy(iam.PolicyStatement(
            actions=['ses:SendEmail'],
            resources=[
                Stack.of(self).format_arn(
                    service='ses',
                    resource='identity',
                    resource_name=source_email,
                )
            ],
        ))

        return fn

    def _create_authorizer_lambda(
        self,
        common_config: Dict,
        common_environment: Dict[str, str]
    ) -> lambda_.Function:
        """
        Create the token authorizer Lambda function.

        Operations: Verify bearer token, return IAM policy
        Permissions: SSM read only
        """
        return lambda_.Function(
            self,
            'AuthorizerLambda',
            function_name='todo-auth-authorizer',
            description='Bearer token authorizer for the todo API',
            code=lambda_.Code.from_asset('../lambda/auth_authorizer'),
            handler='authorizer_handler.handler',
            environment=common_environment,
            **common_config
        )
