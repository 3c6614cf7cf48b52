"""Account VPC stack for an AWS Organizational Unit.

Creates a VPC with public, private and isolated subnets across the number of
AZs derived for the account role, attaches the private tier to the shared
TGW and routes host network traffic (or all traffic, when egress is forced
through the host network) to it.

Architecture:
    - public subnets (/19) route outbound traffic via an Internet Gateway
    - private subnets (/20) use the account NAT or, with forced host egress
      outside the shared account, stay isolated and rely on the shared hub
    - isolated subnets (/21) get no routes; OU consumers add them per project
    - gateway endpoints keep S3 and DynamoDB traffic within the AWS network
    - flow logs go to an (optionally encrypted) CloudWatch log group; the OU
      logging infrastructure ships them onwards
"""

import logging
from dataclasses import dataclass
from typing import Any

from aws_cdk import CfnTag, RemovalPolicy, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_kms as kms
from aws_cdk import aws_logs as logs
from cdk_nag import NagSuppressions
from constructs import Construct

from org_unit_infra.common.exports import ExportRegistry
from org_unit_infra.common.naming import ResourceNameProducer
from org_unit_infra.common.utils import apply_ou_tags
from org_unit_infra.configs.account_config import OuConfig
from org_unit_infra.network.topology import (
    NetworkTopologyConfig,
    NetworkTopologyDecision,
    PrivateSubnetMode,
    decide_topology,
)

logger = logging.getLogger(__name__)

PRIVATE_SUBNET_GROUP = "private"
DEFAULT_FLOW_LOGS_RETENTION = logs.RetentionDays.THREE_DAYS

SUBNET_TYPES: dict[PrivateSubnetMode, ec2.SubnetType] = {
    PrivateSubnetMode.WITH_EGRESS: ec2.SubnetType.PRIVATE_WITH_EGRESS,
    PrivateSubnetMode.ISOLATED: ec2.SubnetType.PRIVATE_ISOLATED,
}


@dataclass(frozen=True)
class VpcStackProps:
    """Configuration properties for an account VPC.

    Attributes:
        ou_config: OU accounts, used to resolve the deploying account role and CIDR.
        host_network_cidr: CIDR of the host network reachable through the shared TGW.
        shared_tgw_id: Id of the TGW created by the shared TGW stack.
        force_outbound_traffic_through_host_network: Route all egress to the host network.
        max_azs_in_prod_account: AZ (and NAT) count of the prod VPC.
        flow_logs_retention: Retention of the flow logs group.
        flow_logs_kms_arn: Optional KMS key ARN encrypting the flow logs group.
    """

    ou_config: OuConfig
    host_network_cidr: str
    shared_tgw_id: str
    force_outbound_traffic_through_host_network: bool
    max_azs_in_prod_account: int | None = None
    flow_logs_retention: logs.RetentionDays = DEFAULT_FLOW_LOGS_RETENTION
    flow_logs_kms_arn: str | None = None


class VpcStack(Stack):
    """VPC of a single OU account, attached to the shared TGW.

    Attributes:
        account_role: Role resolved for the deploying account.
        topology: Topology decision the VPC is built from.
        vpc: The account VPC.
        tgw_attachment: Attachment of the private subnets to the shared TGW.
        routes_to_shared_tgw: One route per private subnet route table.
        flow_logs: VPC flow logs configuration.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: VpcStackProps,
        registry: ExportRegistry,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self._props = props
        self.names = ResourceNameProducer(props.ou_config.ou_name)
        self.account_role = props.ou_config.resolve_role(self.account)
        self.topology = self._decide_topology()

        logger.info(
            "%s: %s account VPC with %d AZ(s), %d NAT gateway(s), %s private tier, "
            "egress to shared TGW for %s",
            construct_id,
            self.account_role.value,
            self.topology.az_count,
            self.topology.nat_gateway_count,
            self.topology.private_subnet_mode.value,
            self.topology.egress_destination_cidr,
        )

        self._create_vpc()
        self.tgw_attachment = self._attach_private_subnets_to_shared_tgw()
        self.routes_to_shared_tgw = self._route_traffic_to_shared_tgw()
        self._create_flow_logs()

        registry.publish(
            self,
            self.names.produce_from_stack("VpcId", self),
            self.vpc.vpc_id,
            description=f"VPC id of the {self.account_role.value} account",
        )
        apply_ou_tags(self, props.ou_config.ou_name, "Network")

    def _decide_topology(self) -> NetworkTopologyDecision:
        return decide_topology(
            NetworkTopologyConfig(
                account_role=self.account_role,
                force_outbound_through_host=self._props.force_outbound_traffic_through_host_network,
                max_azs_in_prod=self._props.max_azs_in_prod_account,
            ),
            self._props.host_network_cidr,
        )

    def _create_vpc(self) -> None:
        """Create the account VPC.

        No Network ACLs are applied; security groups and routing rules are
        the primary security mechanisms. Consumers create project specific
        security groups for each communication pattern.
        """
        self.vpc = ec2.Vpc(
            self,
            "Vpc",
            vpc_name=self.names.produce_from_stack("Vpc", self),
            ip_addresses=ec2.IpAddresses.cidr(
                self._props.ou_config.vpc_cidr_for(self.account),
            ),
            max_azs=self.topology.az_count,
            nat_gateways=self.topology.nat_gateway_count,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=19,
                ),
                ec2.SubnetConfiguration(
                    name=PRIVATE_SUBNET_GROUP,
                    subnet_type=SUBNET_TYPES[self.topology.private_subnet_mode],
                    cidr_mask=20,
                ),
                ec2.SubnetConfiguration(
                    name="isolated",
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    cidr_mask=21,
                ),
            ],
            gateway_endpoints={
                "S3": ec2.GatewayVpcEndpointOptions(
                    service=ec2.GatewayVpcEndpointAwsService.S3,
                ),
                "DynamoDB": ec2.GatewayVpcEndpointOptions(
                    service=ec2.GatewayVpcEndpointAwsService.DYNAMODB,
                ),
            },
        )

    def _attach_private_subnets_to_shared_tgw(self) -> ec2.CfnTransitGatewayVpcAttachment:
        """Attach the private tier to the shared TGW.

        Public and isolated subnets are not attached.
        """
        return ec2.CfnTransitGatewayVpcAttachment(
            self,
            "VpcAttachmentToSharedTgw",
            vpc_id=self.vpc.vpc_id,
            subnet_ids=[subnet.subnet_id for subnet in self.private_subnets],
            transit_gateway_id=self._props.shared_tgw_id,
            tags=[CfnTag(key="Name", value=f"attach-to-{self.account}-private")],
        )

    def _route_traffic_to_shared_tgw(self) -> list[ec2.CfnRoute]:
        """Route private tier traffic for the egress destination via the shared TGW.

        Cross VPC traffic between OU accounts is not routed, and public or
        isolated subnets cannot reach the host network. DNS resolution is
        left to the host network.
        """
        routes = []
        for index, subnet in enumerate(self.private_subnets):
            route = ec2.CfnRoute(
                self,
                f"RouteToHostViaSharedTgw-{index}",
                destination_cidr_block=self.topology.egress_destination_cidr,
                route_table_id=subnet.route_table.route_table_id,
                transit_gateway_id=self._props.shared_tgw_id,
            )
            route.add_dependency(self.tgw_attachment)
            routes.append(route)
        return routes

    def _create_flow_logs(self) -> None:
        """Export VPC flow logs to a CloudWatch log group.

        Short retention gives the logging infrastructure enough buffer to
        ship the logs while keeping storage costs low.
        """
        encryption_key = None
        if self._props.flow_logs_kms_arn:
            encryption_key = kms.Key.from_key_arn(
                self,
                "FlowLogsKey",
                self._props.flow_logs_kms_arn,
            )

        log_group = logs.LogGroup(
            self,
            "FlowLogsGroup",
            log_group_name=self.names.produce_from_stack("FlowLogsGroup", self),
            retention=self._props.flow_logs_retention,
            encryption_key=encryption_key,
            removal_policy=RemovalPolicy.DESTROY,
        )

        flow_logs_role = iam.Role(
            self,
            "FlowLogsRole",
            assumed_by=iam.ServicePrincipal("vpc-flow-logs.amazonaws.com"),
        )
        NagSuppressions.add_resource_suppressions(
            flow_logs_role,
            [
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "Flow logs write to log streams created at runtime in their own log group.",
                },
            ],
            apply_to_children=True,
        )

        self.flow_logs = ec2.FlowLog(
            self,
            "FlowLog",
            flow_log_name=self.names.produce_from_stack("FlowLog", self),
            resource_type=ec2.FlowLogResourceType.from_vpc(self.vpc),
            destination=ec2.FlowLogDestination.to_cloud_watch_logs(log_group, flow_logs_role),
            traffic_type=ec2.FlowLogTrafficType.ALL,
        )

    @property
    def private_subnets(self) -> list[ec2.ISubnet]:
        """Subnets of the private group.

        Selecting by group name covers both PRIVATE_WITH_EGRESS and
        PRIVATE_ISOLATED private tiers.
        """
        return self.vpc.select_subnets(subnet_group_name=PRIVATE_SUBNET_GROUP).subnets
