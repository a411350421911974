#!/usr/bin/env python3
"""
Package Lambda functions with shared dependencies.
This script copies auth_shared into each Lambda function directory.
Note: External dependencies (python-ulid, PyJWT) are provided via Lambda Layer.
"""
import shutil
import os

# Lambda function directories
lambda_functions = [
    'lambda/auth_api',
    'lambda/auth_authorizer',
]

shared_dir = 'lambda/auth_shared'

print("Packaging Lambda functions with shared dependencies...\n")

for func_dir in lambda_functions:
    target_shared = os.path.join(func_dir, 'auth_shared')

    # Remove existing auth_shared if it exists
    if os.path.exists(target_shared):
        shutil.rmtree(target_shared)
        print(f"✓ Removed old auth_shared from {func_dir}")

    shutil.copytree(
        shared_dir,
        target_shared,
        ignore=shutil.ignore_patterns('__pycache__', '*.pyc', '.pytest_cache')
    )
    print(f"✓ Copied auth_shared to {func_dir}")

print("\n✅ All Lambda functions packaged successfully!")
print("\nNote: External dependencies (python-ulid, PyJWT) are provided via Lambda Layer")
print("Now deploy with: cd deployments && cdk deploy todo-auth-dev-stack -c sourceEmail=<verified sender>")
