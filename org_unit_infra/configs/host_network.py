"""Details to connect to host network TGWs. Should be the same for each OU."""

from typing import Final

from pydantic import BaseModel

from .errors import ConfigurationError

DEFAULT_HOST_NETWORK: Final[str] = "US_WEST_2"


class HostNetworkInfo(BaseModel):
    """Host network transit gateway the shared TGW peers with.

    Attributes:
        account_id: Account owning the host TGW.
        tgw_id: Host TGW id.
        tgw_cidr: CIDR range reachable through the host TGW.
        tgw_region: Region of the host TGW.
    """

    model_config = {"frozen": True}

    account_id: str
    tgw_id: str
    tgw_cidr: str
    tgw_region: str


HOST_NETWORKS: Final[dict[str, HostNetworkInfo]] = {
    "US_WEST_2": HostNetworkInfo(
        account_id="662350212343",
        tgw_id="tgw-0c488e5cbd4d589e5",
        tgw_cidr="172.16.0.0/24",
        tgw_region="us-west-2",
    ),
}


def get_host_network_info(key: str = DEFAULT_HOST_NETWORK) -> HostNetworkInfo:
    """Return the host network registered under ``key``.

    Raises:
        ConfigurationError: If no host network is registered under ``key``.
    """
    try:
        return HOST_NETWORKS[key.upper()]
    except KeyError:
        msg = f"Unknown HOST_NETWORK [{key}]. Known host networks: {sorted(HOST_NETWORKS)}."
        raise ConfigurationError(msg) from None
