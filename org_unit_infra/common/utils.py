"""Module for common utility functions used across OU stacks."""

from typing import Final

from aws_cdk import Stack, Tags
from aws_cdk import aws_logs as logs

from org_unit_infra.configs.errors import ConfigurationError

RETENTION_DAYS: Final[dict[int, logs.RetentionDays]] = {
    1: logs.RetentionDays.ONE_DAY,
    3: logs.RetentionDays.THREE_DAYS,
    5: logs.RetentionDays.FIVE_DAYS,
    7: logs.RetentionDays.ONE_WEEK,
    14: logs.RetentionDays.TWO_WEEKS,
    30: logs.RetentionDays.ONE_MONTH,
    60: logs.RetentionDays.TWO_MONTHS,
    90: logs.RetentionDays.THREE_MONTHS,
    120: logs.RetentionDays.FOUR_MONTHS,
    150: logs.RetentionDays.FIVE_MONTHS,
    180: logs.RetentionDays.SIX_MONTHS,
    365: logs.RetentionDays.ONE_YEAR,
    400: logs.RetentionDays.THIRTEEN_MONTHS,
    545: logs.RetentionDays.EIGHTEEN_MONTHS,
    731: logs.RetentionDays.TWO_YEARS,
}


def retention_from_days(days: int) -> logs.RetentionDays:
    """Convert a number of days into a CloudWatch Logs retention period.

    Args:
        days: Retention in days, one of the values CloudWatch Logs accepts.

    Returns:
        The matching retention enum member.

    Raises:
        ConfigurationError: If CloudWatch Logs has no retention of ``days``.
    """
    try:
        return RETENTION_DAYS[days]
    except KeyError:
        msg = (
            f"VPC_FLOWLOGS_RETENTION_DAYS [{days}] is not a supported retention. "
            f"Supported values: {sorted(RETENTION_DAYS)}."
        )
        raise ConfigurationError(msg) from None


def apply_ou_tags(stack: Stack, ou_name: str, domain: str) -> None:
    """Apply standard OU tags to every resource of a stack."""
    Tags.of(stack).add("OrganizationalUnit", ou_name)
    Tags.of(stack).add("Domain", domain)
    Tags.of(stack).add("ManagedBy", "CDK")
