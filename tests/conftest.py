"""Global pytest configuration and fixtures for CDK testing."""

import os
import sys
from pathlib import Path

import pytest
from aws_cdk import App, Environment

# Add the project root to Python path for imports
project_path = Path(__file__).parent.parent
if str(project_path) not in sys.path:
    sys.path.insert(0, str(project_path))

from org_unit_infra.common import ExportRegistry  # noqa: E402
from org_unit_infra.configs import AccountInfo, OuConfig, get_host_network_info  # noqa: E402

SHARED_ACCOUNT_ID = "111111111111"
PROD_ACCOUNT_ID = "222222222222"
DEV_ACCOUNT_ID = "333333333333"
TEST_REGION = "us-west-2"

NETWORK_ENV = {
    "OU_NAME": "payments",
    "SHARED_ACCOUNT_ID": SHARED_ACCOUNT_ID,
    "PROD_ACCOUNT_ID": PROD_ACCOUNT_ID,
    "DEV_ACCOUNT_ID": DEV_ACCOUNT_ID,
    "FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK": "false",
    "GITHUB_ENDPOINT": "https://github.example.com",
    "GITHUB_ORG_NAMES": "payments-core, payments-web",
}

OPTIONAL_NETWORK_ENV = (
    "AWS_PROFILE",
    "GITHUB_TLS_CERT_FILE",
    "SHARED_TGW_ID",
    "SHARED_VPC_ID",
    "MAX_AZS_IN_PROD_ACCOUNT",
    "VPC_FLOWLOGS_RETENTION_DAYS",
    "VPC_FLOWLOGS_KMS_ARN",
    "HOST_NETWORK",
    "FORCE_OUTBOUND_TRAFFIC_THROUGH_HOST_NETWORK",
)


@pytest.fixture(scope="session", autouse=True)
def configure_test_environment():
    """Configure environment variables for consistent testing."""
    test_env = {
        "AWS_DEFAULT_REGION": TEST_REGION,
        "AWS_REGION": TEST_REGION,
        "CDK_DEFAULT_REGION": TEST_REGION,
        "CDK_DEFAULT_ACCOUNT": SHARED_ACCOUNT_ID,
        "CDK_DISABLE_VERSION_CHECK": "true",
        # Prevent actual AWS API calls during testing
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "AWS_SECURITY_TOKEN": "testing",
        "AWS_SESSION_TOKEN": "testing",
    }

    for key, value in test_env.items():
        if key not in os.environ:
            os.environ[key] = value


@pytest.fixture
def network_env(monkeypatch):
    """Set the required network app variables and clear the optional ones."""
    for key in OPTIONAL_NETWORK_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in NETWORK_ENV.items():
        monkeypatch.setenv(key, value)
    return dict(NETWORK_ENV)


@pytest.fixture
def cdk_app():
    """Create a fresh CDK App instance for each test."""
    return App()


@pytest.fixture
def registry():
    """Create an empty export registry for each test."""
    return ExportRegistry()


@pytest.fixture(scope="session")
def ou_config():
    """OU with distinct shared, prod and dev accounts."""
    return OuConfig(
        ou_name="payments",
        shared_account=AccountInfo(
            account_id=SHARED_ACCOUNT_ID,
            aws_region=TEST_REGION,
            vpc_cidr="10.0.0.0/16",
        ),
        prod_account=AccountInfo(
            account_id=PROD_ACCOUNT_ID,
            aws_region=TEST_REGION,
            vpc_cidr="10.1.0.0/16",
        ),
        dev_account=AccountInfo(
            account_id=DEV_ACCOUNT_ID,
            aws_region=TEST_REGION,
            vpc_cidr="10.2.0.0/16",
        ),
    )


@pytest.fixture(scope="session")
def host_network():
    """Default host network the shared TGW peers with."""
    return get_host_network_info()


@pytest.fixture(scope="session")
def account_environments(ou_config):
    """CDK environments keyed by account role."""
    return {
        role: Environment(account=account.account_id, region=account.aws_region)
        for role, account in ou_config.accounts().items()
    }
