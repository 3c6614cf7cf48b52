"""Network topology decisions for OU account VPCs.

Availability zone and NAT gateway counts, the isolation mode of the
"private" subnet tier and the destination of egress routes all follow from
the account role and two knobs:

- ``force_outbound_through_host``: the host network owns all egress, so no
  account provisions its own NAT and every route points at the shared TGW.
- ``max_azs_in_prod``: number of AZs (one NAT per AZ) in the prod account.

2 AZs would be enough for high availability, but services that maintain a
quorum (ElasticSearch, Kafka) need 3. An additional AZ mostly costs an
additional NAT gateway, so only prod scales NATs with AZs; every other
account uses a single NAT.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final

from org_unit_infra.configs.account_config import AccountRole
from org_unit_infra.configs.errors import ConfigurationError

DEFAULT_AZS_NUMBER: Final[int] = 1
UNRESTRICTED_CIDR: Final[str] = "0.0.0.0/0"


class PrivateSubnetMode(str, Enum):
    """Isolation level of the "private" subnet tier."""

    WITH_EGRESS = "with_egress"
    ISOLATED = "isolated"


@dataclass(frozen=True)
class NetworkTopologyConfig:
    """Inputs for a topology decision.

    Attributes:
        account_role: Role of the deploying account.
        force_outbound_through_host: Route all egress through the host network.
        max_azs_in_prod: AZ count for the prod account; ``None`` keeps the default.
    """

    account_role: AccountRole
    force_outbound_through_host: bool
    max_azs_in_prod: int | None = DEFAULT_AZS_NUMBER

    def __post_init__(self):
        if self.max_azs_in_prod is not None and self.max_azs_in_prod < 1:
            msg = f"MAX_AZS_IN_PROD_ACCOUNT must be at least 1, got {self.max_azs_in_prod}."
            raise ConfigurationError(msg)


@dataclass(frozen=True)
class NetworkTopologyDecision:
    """Derived topology for one account VPC."""

    az_count: int
    nat_gateway_count: int
    private_subnet_mode: PrivateSubnetMode
    egress_destination_cidr: str

    @property
    def private_subnet_isolated(self) -> bool:
        return self.private_subnet_mode is PrivateSubnetMode.ISOLATED


def derive_az_count(role: AccountRole, max_azs_in_prod: int | None) -> int:
    if role is AccountRole.PROD and max_azs_in_prod:
        return max_azs_in_prod
    return DEFAULT_AZS_NUMBER


def derive_nat_gateway_count(
    role: AccountRole,
    force_outbound_through_host: bool,
    az_count: int,
) -> int:
    """Number of NAT gateways for the account VPC.

    Forced host egress needs no local NAT. Prod gets one NAT per AZ for
    availability; other accounts share a single NAT to save on costs.
    """
    if force_outbound_through_host:
        return 0
    if role is AccountRole.PROD:
        return az_count
    return 1


def derive_private_subnet_mode(
    role: AccountRole,
    force_outbound_through_host: bool,
) -> PrivateSubnetMode:
    """Isolation mode of the private tier.

    A non-shared account with forced host egress must not have its own
    internet path and relies on the shared hub instead.
    """
    if role is AccountRole.SHARED or not force_outbound_through_host:
        return PrivateSubnetMode.WITH_EGRESS
    return PrivateSubnetMode.ISOLATED


def derive_egress_destination_cidr(
    force_outbound_through_host: bool,
    host_network_cidr: str,
) -> str:
    """Destination CIDR routed to the shared TGW.

    Without forced egress only host network traffic goes through the hub
    and everything else leaves through the account NAT.
    """
    if force_outbound_through_host:
        return UNRESTRICTED_CIDR
    return host_network_cidr


def decide_topology(
    config: NetworkTopologyConfig,
    host_network_cidr: str,
) -> NetworkTopologyDecision:
    """Derive the full topology decision for an account."""
    az_count = derive_az_count(config.account_role, config.max_azs_in_prod)
    return NetworkTopologyDecision(
        az_count=az_count,
        nat_gateway_count=derive_nat_gateway_count(
            config.account_role,
            config.force_outbound_through_host,
            az_count,
        ),
        private_subnet_mode=derive_private_subnet_mode(
            config.account_role,
            config.force_outbound_through_host,
        ),
        egress_destination_cidr=derive_egress_destination_cidr(
            config.force_outbound_through_host,
            host_network_cidr,
        ),
    )
