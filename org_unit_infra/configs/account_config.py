"""Account configuration models for an AWS Organizational Unit.

Every OU is expected to have the following accounts:
    Dev: account for integration tests.
    Prod: production workloads.
    Shared: network connectivity and CI/CD.

Account roles are resolved once from the configured account ids, so stacks
compare against an explicit ``AccountRole`` instead of raw account strings.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .errors import ConfigurationError


class AccountRole(str, Enum):
    """Role an account plays within the OU."""

    SHARED = "shared"
    PROD = "prod"
    DEV = "dev"


class AccountInfo(BaseModel):
    """Configuration model for a single OU account.

    Attributes:
        account_id: AWS account ID.
        aws_region: AWS region identifier the account deploys into.
        vpc_cidr: CIDR block reserved for the account VPC.
    """

    model_config = {"frozen": True}

    account_id: str = Field(min_length=1)
    aws_region: str = Field(min_length=1)
    vpc_cidr: str = Field(min_length=1)


class OuConfig(BaseModel):
    """Configuration model for the three accounts of an OU.

    Attributes:
        ou_name: OU name, used as a prefix for resource names.
        shared_account: Account hosting network connectivity and CI/CD.
        prod_account: Production account.
        dev_account: Development account.
    """

    model_config = {"frozen": True}

    ou_name: str = Field(min_length=1)
    shared_account: AccountInfo
    prod_account: AccountInfo
    dev_account: AccountInfo

    @model_validator(mode="after")
    def _check_distinct_accounts(self) -> "OuConfig":
        ids = [info.account_id for info in self.accounts().values()]
        if len(set(ids)) != len(ids):
            msg = (
                "SHARED_ACCOUNT_ID, PROD_ACCOUNT_ID and DEV_ACCOUNT_ID must be "
                f"distinct, got {ids}."
            )
            raise ConfigurationError(msg)
        return self

    def accounts(self) -> dict[AccountRole, AccountInfo]:
        """Map every OU role to its account."""
        return {
            AccountRole.SHARED: self.shared_account,
            AccountRole.PROD: self.prod_account,
            AccountRole.DEV: self.dev_account,
        }

    def account_for(self, role: AccountRole) -> AccountInfo:
        return self.accounts()[role]

    def resolve_role(self, account_id: str) -> AccountRole:
        """Resolve the OU role of an account.

        Args:
            account_id: Deploying account id.

        Returns:
            The role whose configured account id equals ``account_id``.

        Raises:
            ConfigurationError: If no configured account matches.
        """
        for role, info in self.accounts().items():
            if info.account_id == account_id:
                return role

        configured = {role.value: info.account_id for role, info in self.accounts().items()}
        msg = (
            f"Account [{account_id}] is not part of OU [{self.ou_name}]. "
            f"Configured accounts: {configured}."
        )
        raise ConfigurationError(msg)

    def require_role(self, account_id: str, expected: AccountRole) -> AccountRole:
        """Ensure the deploying account is the configured account for ``expected``.

        Raises:
            ConfigurationError: If ``account_id`` is not the ``expected`` account.
        """
        expected_id = self.account_for(expected).account_id
        if account_id != expected_id:
            msg = (
                f"This stack must be deployed in a {expected.value.capitalize()} OU "
                f"account [{expected_id}]. Current account is [{account_id}]."
            )
            raise ConfigurationError(msg)
        return expected

    def vpc_cidr_for(self, account_id: str) -> str:
        """VPC CIDR configured for the account, failing fast on unknown ids."""
        return self.account_for(self.resolve_role(account_id)).vpc_cidr
