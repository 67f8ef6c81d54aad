"""
Pytest configuration and fixtures for the stack wiring tests
Handles import paths, fake AWS credentials and the CDK/Node.js guard
"""
import os
import sys
import shutil
import pytest
from pathlib import Path

# Fake credentials BEFORE any boto3 client is created
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')

# Add src, infrastructure and scripts directories to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "scripts"))
sys.path.insert(0, str(project_root / "infrastructure"))
sys.path.insert(0, str(project_root / "src"))


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: marks fast tests with no external services"
    )
    config.addinivalue_line(
        "markers", "cdk: marks tests that synthesize CDK stacks (need Node.js)"
    )


@pytest.fixture(scope="session")
def node_available():
    """Skip CDK synthesis when the jsii runtime cannot start"""
    if shutil.which("node") is None:
        pytest.skip("Node.js is required to synthesize CDK stacks")
    return True


@pytest.fixture
def namespace():
    from stack_wiring.naming import resolve_namespace

    return resolve_namespace("example", "dev")


@pytest.fixture
def graph(namespace):
    from stack_wiring.units import declare_units

    return declare_units(namespace)
