"""Configuration models and environment settings for OU infrastructure."""

from .account_config import AccountInfo, AccountRole, OuConfig
from .errors import ConfigurationError
from .host_network import HostNetworkInfo, get_host_network_info
from .settings import (
    OuNetworkSettings,
    PipelineSettings,
    load_network_settings,
    load_pipeline_settings,
)

__all__ = [
    "AccountInfo",
    "AccountRole",
    "ConfigurationError",
    "HostNetworkInfo",
    "OuConfig",
    "OuNetworkSettings",
    "PipelineSettings",
    "get_host_network_info",
    "load_network_settings",
    "load_pipeline_settings",
]
