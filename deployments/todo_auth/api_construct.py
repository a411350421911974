"""
API Gateway construct for the TODO auth service.

REST API with the public /auth routes, each a Lambda proxy integration of
the single auth API function:

1. POST /auth/signup - Create a PENDING user and email a code
2. POST /auth/verify - Verify email with the code
3. POST /auth/login - Exchange credentials for a bearer token
4. POST /auth/resend-code - Email a fresh signup code
5. POST /auth/password/forgot - Email a password reset code
6. POST /auth/password/reset - Set a new password with a reset code

CORS preflight (OPTIONS) is answered by API Gateway for every resource.

Follows steering rules:
- Infrastructure definition only (no business logic)
- Explicit over implicit (all configurations declared)
- Fail fast with request validation
"""

from typing import Dict, List

from aws_cdk import (
    aws_apigateway as apigw,
    aws_lambda as lambda_,
)
from constructs import Construct


# route path -> (required body fields, success status, error statuses)
AUTH_ROUTES: Dict[str, tuple] = {
    'signup': (['email', 'password'], '201', ['400', '409', '500']),
    'verify': (['email', 'code'], '200', ['400', '500']),
    'login': (['email', 'password'], '200', ['400', '401', '500']),
    'resend-code': (['email'], '200', ['400', '500']),
    'password/forgot': (['email'], '200', ['400', '500']),
    'password/reset': (['email', 'code', 'password'], '200', ['400', '500']),
}


class AuthApiConstruct(Construct):
    """
    Construct that creates the REST API for the auth routes.

    Attributes:
        api: The REST API Gateway instance
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        api_lambda: lambda_.Function,
        env_name: str = 'dev',
        **kwargs
    ) -> None:
        """
        Initialize API Gateway construct.

        Args:
            scope: CDK construct scope
            construct_id: Unique construct identifier
            api_lambda: Auth API Lambda function
            env_name: Environment name, used as the stage name
        """
        super().__init__(scope, construct_id, **kwargs)

        self.api = apigw.RestApi(
            self,
            'TodoAuthApi',
            rest_api_name=f'todo-auth-api-{env_name}',
            description='TODO auth REST API',
            deploy=True,
            deploy_options=apigw.StageOptions(
                stage_name=env_name,
                throttling_rate_limit=100,  # requests per second
                throttling_burst_limit=200,
                tracing_enabled=True,
                logging_level=apigw.MethodLoggingLevel.INFO,
                # Request bodies contain passwords
                data_trace_enabled=False,
                metrics_enabled=True,
            ),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
                allow_headers=['Content-Type', 'Authorization'],
            ),
            cloud_watch_role=True,
        )

        body_validator = apigw.RequestValidator(
            self,
            'BodyValidator',
            rest_api=self.api,
            request_validator_name='body-validator',
            validate_request_body=True,
            validate_request_parameters=False,
        )

        integration = apigw.LambdaIntegration(api_lambda)
        auth_resource = self.api.root.add_resource('auth')

        for path, (required, success_status, error_statuses) in AUTH_ROUTES.items():
            resource = auth_resource
            for part in path.split('/'):
                resource = resource.get_resource(part) or resource.add_resource(part)

            resource.add_method(
                'POST',
                integration,
                authorization_type=apigw.AuthorizationType.NONE,
                request_validator=body_validator,
                request_models={
                    'application/json': self._create_body_model(path, required)
                },
                method_responses=[
                    apigw.MethodResponse(status_code=status)
                    for status in [success_status, *error_statuses]
                ]
            )

    def _create_body_model(self, path: str, required: List[str]) -> apigw.Model:
        """
        Create a request model requiring the route's string fields.

        Field formats are checked by the Lambda; the model only rejects
        bodies that are not objects or lack required fields.
        """
        model_id = ''.join(part.title() for part in path.replace('-', '/').split('/'))
        properties = {
            field: apigw.JsonSchema(type=apigw.JsonSchemaType.STRING, min_length=1)
            for field in required
        }
        if path == 'signup':
            properties['name'] = apigw.JsonSchema(type=apigw.JsonSchemaType.STRING)

        return self.api.add_model(
            f'{model_id}Model',
            content_type='application/json',
            model_name=f'{model_id}Request',
            schema=apigw.JsonSchema(
                schema=apigw.JsonSchemaVersion.DRAFT4,
                title=f'{model_id} Request',
                type=apigw.JsonSchemaType.OBJECT,
                properties=properties,
                required=required,
            )
        )
