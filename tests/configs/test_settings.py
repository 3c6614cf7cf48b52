"""
Test suite for environment-sourced OU settings.

Covers required parameter validation, the legacy spelling of the forced
egress flag, GitHub org parsing, phase outputs and pipeline settings.
"""

import pytest

from org_unit_infra.configs import ConfigurationError, load_network_settings, load_pipeline_settings
from org_unit_infra.configs.settings import NETWORK_REQUIRED_PARAMETERS, PIPELINE_REQUIRED_PARAMETERS


class TestNetworkSettings:
    """Test suite for the network app settings."""

    def test_loads_required_parameters(self, network_env):
        settings = load_network_settings()

        assert settings.ou_name == "payments"
        assert settings.shared_account_id == network_env["SHARED_ACCOUNT_ID"]
        assert settings.prod_account_id == network_env["PROD_ACCOUNT_ID"]
        assert settings.dev_account_id == network_env["DEV_ACCOUNT_ID"]
        assert settings.force_outbound_traffic_through_host_network is False
        assert settings.github_endpoint == "https://github.example.com"

    def test_defaults(self, network_env):
        """Verify optional parameters fall back to their defaults."""
        settings = load_network_settings()

        assert settings.aws_region == "us-west-2"
        assert settings.shared_tgw_id is None
        assert settings.shared_vpc_id is None
        assert settings.max_azs_in_prod_account is None
        assert settings.vpc_flowlogs_retention_days is None
        assert settings.vpc_flowlogs_kms_arn is None
        assert settings.host_network == "US_WEST_2"
        assert settings.github_tls_cert_file is None

    def test_org_names_are_split_and_trimmed(self, network_env):
        assert load_network_settings().github_org_names == ["payments-core", "payments-web"]

    def test_blank_org_names_rejected(self, network_env, monkeypatch):
        monkeypatch.setenv("GITHUB_ORG_NAMES", " , ")

        with pytest.raises(ConfigurationError, match="Invalid: GITHUB_ORG_NAMES"):
            load_network_settings()

    def test_repeated_org_names_rejected(self, network_env, monkeypatch):
        """Verify a repeated org fails at startup instead of as a duplicate construct."""
        monkeypatch.setenv("GITHUB_ORG_NAMES", "payments-core, payments-web,payments-core")

        with pytest.raises(ConfigurationError, match=r"Invalid: GITHUB_ORG_NAMES .*repeated: \['payments-core'\]"):
            load_network_settings()

    @pytest.mark.parametrize(
        "variable",
        [
            "FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK",
            "FORCE_OUTBOUND_TRAFFIC_THROUGH_HOST_NETWORK",
        ],
    )
    def test_forced_egress_accepts_both_spellings(self, network_env, monkeypatch, variable):
        """Verify the historical variable name and the corrected one both work."""
        monkeypatch.delenv("FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK")
        monkeypatch.setenv(variable, "true")

        assert load_network_settings().force_outbound_traffic_through_host_network is True

    def test_missing_parameters_enumerate_all_required_names(self, network_env, monkeypatch):
        """Verify a missing value aborts with every required name listed."""
        monkeypatch.delenv("OU_NAME")
        monkeypatch.delenv("GITHUB_ENDPOINT")

        with pytest.raises(ConfigurationError) as exc_info:
            load_network_settings()

        message = str(exc_info.value)
        for name in NETWORK_REQUIRED_PARAMETERS:
            assert name in message
        assert "Missing: OU_NAME, GITHUB_ENDPOINT." in message
        assert 'Run "export OU_NAME=<value>".' in message

    def test_empty_value_counts_as_missing(self, network_env, monkeypatch):
        monkeypatch.setenv("DEV_ACCOUNT_ID", "")

        with pytest.raises(ConfigurationError, match="Missing: DEV_ACCOUNT_ID"):
            load_network_settings()

    def test_invalid_prod_az_count(self, network_env, monkeypatch):
        monkeypatch.setenv("MAX_AZS_IN_PROD_ACCOUNT", "0")

        with pytest.raises(ConfigurationError, match="Invalid: MAX_AZS_IN_PROD_ACCOUNT"):
            load_network_settings()

    def test_phase_outputs(self, network_env, monkeypatch):
        monkeypatch.setenv("SHARED_TGW_ID", "tgw-0123456789abcdef0")
        monkeypatch.setenv("SHARED_VPC_ID", "vpc-0123456789abcdef0")
        monkeypatch.setenv("MAX_AZS_IN_PROD_ACCOUNT", "3")

        settings = load_network_settings()

        assert settings.shared_tgw_id == "tgw-0123456789abcdef0"
        assert settings.shared_vpc_id == "vpc-0123456789abcdef0"
        assert settings.max_azs_in_prod_account == 3

    def test_overrides_take_precedence(self, network_env):
        settings = load_network_settings(ou_name="billing")
        assert settings.ou_name == "billing"

    def test_to_ou_config(self, network_env):
        """Verify settings map to the OU account model with default CIDRs."""
        ou_config = load_network_settings().to_ou_config()

        assert ou_config.ou_name == "payments"
        assert ou_config.shared_account.account_id == network_env["SHARED_ACCOUNT_ID"]
        assert ou_config.shared_account.vpc_cidr == "10.0.0.0/16"
        assert ou_config.prod_account.vpc_cidr == "10.1.0.0/16"
        assert ou_config.dev_account.vpc_cidr == "10.2.0.0/16"
        assert ou_config.dev_account.aws_region == "us-west-2"

    def test_duplicate_accounts_rejected(self, network_env, monkeypatch):
        monkeypatch.setenv("DEV_ACCOUNT_ID", network_env["PROD_ACCOUNT_ID"])

        with pytest.raises(ConfigurationError, match="must be distinct"):
            load_network_settings().to_ou_config()


class TestTlsCertificate:
    """Test suite for the optional GHE TLS certificate."""

    def test_no_certificate_configured(self, network_env):
        assert load_network_settings().read_tls_certificate() is None

    def test_reads_certificate_file(self, network_env, monkeypatch, tmp_path):
        pem = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"
        cert_file = tmp_path / "ghe.pem"
        cert_file.write_text(pem, encoding="utf-8")
        monkeypatch.setenv("GITHUB_TLS_CERT_FILE", str(cert_file))

        assert load_network_settings().read_tls_certificate() == pem

    def test_missing_certificate_file(self, network_env, monkeypatch, tmp_path):
        monkeypatch.setenv("GITHUB_TLS_CERT_FILE", str(tmp_path / "missing.pem"))

        with pytest.raises(ConfigurationError, match="GITHUB_TLS_CERT_FILE"):
            load_network_settings().read_tls_certificate()


class TestPipelineSettings:
    """Test suite for the pipeline app settings."""

    @pytest.fixture
    def pipeline_env(self, monkeypatch):
        monkeypatch.delenv("GITHUB_BRANCH", raising=False)
        values = {
            "CREDENTIALS_ACCOUNT_ID": "444444444444",
            "SHARED_ACCOUNT_ID": "111111111111",
            "PROD_ACCOUNT_ID": "222222222222",
            "DEV_ACCOUNT_ID": "333333333333",
            "GITHUB_REPOSITORY": "payments/org-unit-infrastructure",
        }
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        return values

    def test_loads_pipeline_settings(self, pipeline_env):
        settings = load_pipeline_settings()

        assert settings.credentials_account_id == "444444444444"
        assert settings.github_repository == "payments/org-unit-infrastructure"
        assert settings.github_branch == "main"
        assert settings.aws_region == "us-west-2"
        assert settings.ghe_connection_export_name == "gheConnectionArn"

    def test_missing_credentials_account(self, pipeline_env, monkeypatch):
        monkeypatch.delenv("CREDENTIALS_ACCOUNT_ID")

        with pytest.raises(ConfigurationError) as exc_info:
            load_pipeline_settings()

        message = str(exc_info.value)
        for name in PIPELINE_REQUIRED_PARAMETERS:
            assert name in message
        assert "Missing: CREDENTIALS_ACCOUNT_ID." in message
