"""TODO auth service CDK constructs."""

from .table_construct import AuthTableConstruct
from .lambda_constructs import AuthLambdasConstruct
from .api_construct import AuthApiConstruct

__all__ = [
    "AuthTableConstruct",
    "AuthLambdasConstruct",
    "AuthApiConstruct",
]
