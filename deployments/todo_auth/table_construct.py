"""
DynamoDB table construct for the TODO auth service.

One table holds users and their one-time codes (single-table design):

Access Patterns:
1. Get user by email: PK=USER#{email}, SK=PROFILE
2. Get user by id: GSI1PK=USERID#{userId}, GSI1SK=PROFILE (GSI1)
3. Recent signup codes: PK=USER#{email}, SK begins_with VERIFICATION#
4. Recent reset codes: PK=USER#{email}, SK begins_with RESET#

Code items carry a `ttl` attribute so DynamoDB removes them after expiry.
Deletion is lazy, so the service also checks `expiresAt` on read.
"""

from aws_cdk import (
    aws_dynamodb as dynamodb,
    RemovalPolicy,
)
from constructs import Construct


class AuthTableConstruct(Construct):
    """
    Construct that creates the auth DynamoDB table.

    Attributes:
        table: The auth DynamoDB table
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        env_name: str = 'dev',
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.table = dynamodb.Table(
            self,
            "AuthTable",
            # Primary key configuration
            partition_key=dynamodb.Attribute(
                name="PK",
                type=dynamodb.AttributeType.STRING
            ),
            sort_key=dynamodb.Attribute(
                name="SK",
                type=dynamodb.AttributeType.STRING
            ),
            # Billing configuration
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            # Expired verification and reset codes
            time_to_live_attribute="ttl",
            # Data protection
            point_in_time_recovery=True,
            removal_policy=RemovalPolicy.RETAIN if env_name == 'prod' else RemovalPolicy.DESTROY,
        )

        # Lookup by user id
        self.table.add_global_secondary_index(
            index_name="GSI1",
            partition_key=dynamodb.Attribute(
                name="GSI1PK",
                type=dynamodb.AttributeType.STRING
            ),
            sort_key=dynamodb.Attribute(
                name="GSI1SK",
                type=dynamodb.AttributeType.STRING
            ),
            projection_type=dynamodb.ProjectionType.ALL,
        )
