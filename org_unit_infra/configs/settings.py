"""Environment-sourced configuration for the OU network and pipeline apps.

Settings are read with Pydantic settings from process environment variables
(and an optional ``.env`` file). Missing required values are reported
together, naming every required variable, before any stack is declared.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Final, TypeVar

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .account_config import AccountInfo, OuConfig
from .errors import ConfigurationError
from .host_network import DEFAULT_HOST_NETWORK

logger = logging.getLogger(__name__)

NETWORK_REQUIRED_PARAMETERS: Final[tuple[str, ...]] = (
    "OU_NAME",
    "SHARED_ACCOUNT_ID",
    "PROD_ACCOUNT_ID",
    "DEV_ACCOUNT_ID",
    "FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK",
    "GITHUB_ENDPOINT",
    "GITHUB_ORG_NAMES",
)

PIPELINE_REQUIRED_PARAMETERS: Final[tuple[str, ...]] = (
    "CREDENTIALS_ACCOUNT_ID",
    "SHARED_ACCOUNT_ID",
    "PROD_ACCOUNT_ID",
    "DEV_ACCOUNT_ID",
    "GITHUB_REPOSITORY",
)

_SETTINGS_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    env_ignore_empty=True,
    case_sensitive=False,
    extra="ignore",
    populate_by_name=True,
)


class OuNetworkSettings(BaseSettings):
    """Settings for the OU network app.

    Attributes:
        ou_name: OU name used to prefix resource names.
        shared_account_id: Shared (network and CI/CD) account id.
        prod_account_id: Production account id.
        dev_account_id: Development account id.
        force_outbound_traffic_through_host_network: Route all egress through
            the host network instead of account NAT gateways.
        github_endpoint: GitHub Enterprise endpoint URL.
        github_org_names: GitHub orgs the OU connects to.
        github_tls_cert_file: PEM certificate for a self-signed GHE server.
        aws_region: Region every OU account deploys into.
        shared_vpc_cidr: CIDR of the shared account VPC.
        prod_vpc_cidr: CIDR of the prod account VPC.
        dev_vpc_cidr: CIDR of the dev account VPC.
        shared_tgw_id: Shared TGW id, known once SharedTgwStack is deployed.
        shared_vpc_id: Shared VPC id, known once SharedVpcStack is deployed.
        max_azs_in_prod_account: Number of AZs (and NATs) in the prod VPC.
        vpc_flowlogs_retention_days: Flow log retention in days.
        vpc_flowlogs_kms_arn: KMS key ARN encrypting the flow log group.
        host_network: Key of the host network to peer with.
    """

    model_config = _SETTINGS_CONFIG

    ou_name: str
    shared_account_id: str
    prod_account_id: str
    dev_account_id: str
    force_outbound_traffic_through_host_network: bool = Field(
        validation_alias=AliasChoices(
            "FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK",
            "FORCE_OUTBOUND_TRAFFIC_THROUGH_HOST_NETWORK",
        ),
    )
    github_endpoint: str
    github_org_names: Annotated[list[str], NoDecode]
    github_tls_cert_file: Path | None = None

    aws_region: str = "us-west-2"
    shared_vpc_cidr: str = "10.0.0.0/16"
    prod_vpc_cidr: str = "10.1.0.0/16"
    dev_vpc_cidr: str = "10.2.0.0/16"

    shared_tgw_id: str | None = None
    shared_vpc_id: str | None = None

    max_azs_in_prod_account: int | None = Field(default=None, ge=1)
    vpc_flowlogs_retention_days: int | None = Field(default=None, ge=1)
    vpc_flowlogs_kms_arn: str | None = None
    host_network: str = DEFAULT_HOST_NETWORK

    @field_validator("github_org_names", mode="before")
    @classmethod
    def _split_org_names(cls, value: object) -> object:
        if isinstance(value, str):
            value = [name.strip() for name in value.split(",")]
        if isinstance(value, list):
            value = [name for name in value if name]
            if not value:
                raise ValueError("at least one GitHub org name is required")
            duplicates = sorted({name for name in value if value.count(name) > 1})
            if duplicates:
                raise ValueError(f"GitHub org names must be unique, repeated: {duplicates}")
        return value

    def to_ou_config(self) -> OuConfig:
        """Build the OU account model from the configured account ids."""
        return OuConfig(
            ou_name=self.ou_name,
            shared_account=AccountInfo(
                account_id=self.shared_account_id,
                aws_region=self.aws_region,
                vpc_cidr=self.shared_vpc_cidr,
            ),
            prod_account=AccountInfo(
                account_id=self.prod_account_id,
                aws_region=self.aws_region,
                vpc_cidr=self.prod_vpc_cidr,
            ),
            dev_account=AccountInfo(
                account_id=self.dev_account_id,
                aws_region=self.aws_region,
                vpc_cidr=self.dev_vpc_cidr,
            ),
        )

    def read_tls_certificate(self) -> str | None:
        """Read the GHE TLS certificate PEM, if one was configured.

        Raises:
            ConfigurationError: If GITHUB_TLS_CERT_FILE points to a missing file.
        """
        if self.github_tls_cert_file is None:
            return None
        if not self.github_tls_cert_file.is_file():
            msg = f"GITHUB_TLS_CERT_FILE [{self.github_tls_cert_file}] does not exist."
            raise ConfigurationError(msg)
        return self.github_tls_cert_file.read_text(encoding="utf-8")


class PipelineSettings(BaseSettings):
    """Settings for the IAM permissions pipeline app.

    Attributes:
        credentials_account_id: Account whose principals may assume the
            deployed read-only roles.
        shared_account_id: Account hosting the pipeline.
        prod_account_id: Production deployment target.
        dev_account_id: Development deployment target.
        aws_region: Region for the pipeline and its targets.
        github_repository: ``owner/name`` of the pipeline source repository.
        github_branch: Branch the pipeline tracks.
        ghe_connection_export_name: Export holding the GHE connection ARN.
    """

    model_config = _SETTINGS_CONFIG

    credentials_account_id: str
    shared_account_id: str
    prod_account_id: str
    dev_account_id: str
    aws_region: str = "us-west-2"
    github_repository: str
    github_branch: str = "main"
    ghe_connection_export_name: str = "gheConnectionArn"


SettingsT = TypeVar("SettingsT", bound=BaseSettings)


def _load(
    settings_cls: type[SettingsT],
    required: tuple[str, ...],
    **overrides: object,
) -> SettingsT:
    try:
        return settings_cls(**overrides)
    except ValidationError as e:
        missing = []
        invalid = []
        for error in e.errors():
            name = str(error["loc"][0]).upper() if error["loc"] else "<settings>"
            if error["type"] == "missing":
                missing.append(name)
            else:
                invalid.append(f"{name} ({error['msg']})")

        parts = [f"Following parameters are required: {', '.join(required)}."]
        if missing:
            parts.append(f"Missing: {', '.join(missing)}.")
            parts.append(f'Run "export {missing[0]}=<value>".')
        if invalid:
            parts.append(f"Invalid: {'; '.join(invalid)}.")
        msg = " ".join(parts)
        logger.error(msg)
        raise ConfigurationError(msg) from e


def load_network_settings(**overrides: object) -> OuNetworkSettings:
    """Load and validate the network app settings.

    Raises:
        ConfigurationError: Enumerating all required names when values are
            missing or invalid.
    """
    return _load(OuNetworkSettings, NETWORK_REQUIRED_PARAMETERS, **overrides)


def load_pipeline_settings(**overrides: object) -> PipelineSettings:
    """Load and validate the pipeline app settings."""
    return _load(PipelineSettings, PIPELINE_REQUIRED_PARAMETERS, **overrides)
