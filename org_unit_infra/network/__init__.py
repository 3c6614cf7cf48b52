"""Network infrastructure for an AWS Organizational Unit.

This module provides the shared Transit Gateway hub, per-account VPCs, the
GitHub Enterprise connection and the topology decisions they are built from.
"""

from .ghe_connection_stack import GheConnectionStack, GheConnectionStackProps
from .shared_tgw_stack import SharedTgwStack, SharedTgwStackProps
from .topology import NetworkTopologyConfig, NetworkTopologyDecision, decide_topology
from .vpc_stack import VpcStack, VpcStackProps

__all__ = [
    "GheConnectionStack",
    "GheConnectionStackProps",
    "NetworkTopologyConfig",
    "NetworkTopologyDecision",
    "SharedTgwStack",
    "SharedTgwStackProps",
    "VpcStack",
    "VpcStackProps",
    "decide_topology",
]
