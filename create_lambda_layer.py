#!/usr/bin/env python3
"""
Create Lambda Layer with the auth service's third-party dependencies.
Note: boto3 is already available in Lambda runtime, so only python-ulid,
PyJWT and typing-extensions are installed.
"""
import subprocess
import os
import shutil
import sys
from pathlib import Path

LAYER_DIR = 'lambda_layer/python'

LAYER_PACKAGES = [
    'python-ulid>=2.2.0',
    'PyJWT>=2.8.0',
    # python-ulid needs it below Python 3.12; the build host may be newer
    'typing-extensions>=4.0.0',
]


def install_command(layer_dir=LAYER_DIR):
    return [
        sys.executable, '-m', 'pip', 'install',
        *LAYER_PACKAGES,
        '-t', layer_dir,
        '--upgrade',
        '--no-cache-dir'
    ]


def build_layer(layer_dir=LAYER_DIR):
    os.makedirs(layer_dir, exist_ok=True)

    print("Creating Lambda Layer...")
    print(f"Layer directory: {layer_dir}\n")

    print(f"Installing {', '.join(LAYER_PACKAGES)}...")
    result = subprocess.run(install_command(layer_dir), capture_output=True, text=True)

    if result.returncode == 0:
        print("✓ Installed layer dependencies")
    else:
        print("✗ Failed to install dependencies")
        print(f"Error: {result.stderr}")
        sys.exit(1)

    print("\nInstalled packages:")
    for item in sorted(os.listdir(layer_dir)):
        if os.path.isdir(os.path.join(layer_dir, item)) and not item.startswith('__'):
            print(f"  - {item}")

    # Drop bytecode and console scripts; keep dist-info for dependency tracking
    print("\nCleaning up unnecessary files...")
    for pattern in ['__pycache__', '*.pyc', 'bin']:
        for item in Path(layer_dir).rglob(pattern):
            if not item.exists():
                continue
            if item.is_dir():
                shutil.rmtree(item)
            else:
                item.unlink()
            print(f"  ✓ Removed {item.relative_to(layer_dir)}")

    print("\n✅ Lambda Layer created successfully!")
    print(f"\nLayer location: {layer_dir}")
    print("\nNext steps:")
    print("1. python package_lambdas.py")
    print("2. cd deployments && cdk deploy todo-auth-dev-stack -c sourceEmail=<verified sender>")


if __name__ == '__main__':
    build_layer()
