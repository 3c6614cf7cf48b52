"""Shared Transit Gateway stack for an AWS Organizational Unit.

Creates the OU TGW in the shared account, peers it with the host network TGW
and shares it with the prod and dev accounts. Every OU account VPC then
attaches its private subnets to this TGW.

Deployment happens in two phases: the peering attachment must be accepted on
the host network side before the static route to the host can be created,
which is signalled with ``cdk deploy -c attached-to-host=true``.
"""

import logging
from dataclasses import dataclass
from typing import Any

from aws_cdk import CfnTag, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_logs as logs
from aws_cdk import aws_ram as ram
from aws_cdk import custom_resources as cr
from cdk_nag import NagSuppressions
from constructs import Construct

from org_unit_infra.common.exports import ExportRegistry
from org_unit_infra.common.naming import ResourceNameProducer
from org_unit_infra.common.utils import apply_ou_tags
from org_unit_infra.configs.account_config import AccountRole, OuConfig
from org_unit_infra.configs.host_network import HostNetworkInfo
from org_unit_infra.network.topology import derive_egress_destination_cidr

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_TABLE_ID_PATH = "TransitGateways.0.Options.AssociationDefaultRouteTableId"


@dataclass(frozen=True)
class SharedTgwStackProps:
    """Configuration properties for the shared TGW.

    Attributes:
        ou_config: OU accounts; the stack must deploy into the shared account.
        host_network: Host network TGW to peer with.
        is_attachment_ready: Whether the host side accepted the peering attachment.
        force_outbound_traffic_through_host_network: Route all traffic to the host.
    """

    ou_config: OuConfig
    host_network: HostNetworkInfo
    is_attachment_ready: bool
    force_outbound_traffic_through_host_network: bool


class SharedTgwStack(Stack):
    """TGW hub shared across the OU accounts and peered with the host network.

    Attributes:
        shared_tgw: The OU transit gateway.
        route_table_id: Id of the TGW default association route table.
        host_attachment: Peering attachment to the host network TGW.
        route_to_host: Static route to the host, once the attachment is accepted.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: SharedTgwStackProps,
        registry: ExportRegistry,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        props.ou_config.require_role(self.account, AccountRole.SHARED)
        self._props = props
        self.names = ResourceNameProducer(props.ou_config.ou_name)

        self.shared_tgw = self._create_shared_tgw()
        self.route_table_id = self._get_default_route_table_id()
        self._share_tgw()
        self.host_attachment = self._attach_to_host_network()

        self.route_to_host: ec2.CfnTransitGatewayRoute | None = None
        if props.is_attachment_ready:
            self.route_to_host = self._route_traffic_within_shared_tgw()
        else:
            logger.info(
                "%s: host attachment not accepted yet, skipping static route to host network",
                construct_id,
            )

        registry.publish(
            self,
            self.names.produce_from_stack("SharedTgwId", self),
            self.shared_tgw.attr_id,
            description="Shared TGW id",
        )
        registry.publish(
            self,
            self.names.produce_from_stack("HostAttachmentId", self),
            self.host_attachment.attr_transit_gateway_attachment_id,
            description="Peering attachment id to the host network TGW",
        )
        registry.publish(
            self,
            self.names.produce_from_stack("SharedTgwRouteTableId", self),
            self.route_table_id,
            description="Shared TGW default route table id",
        )

        NagSuppressions.add_stack_suppressions(
            stack=self,
            suppressions=[
                {
                    "id": "AwsSolutions-IAM4",
                    "reason": "Custom resource provider uses the AWS managed basic execution role",
                },
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "describeTransitGateways does not support resource level permissions",
                },
                {
                    "id": "AwsSolutions-L1",
                    "reason": "Custom resource provider runtime is managed by CDK",
                },
            ],
        )
        apply_ou_tags(self, props.ou_config.ou_name, "Network")

    def _create_shared_tgw(self) -> ec2.CfnTransitGateway:
        return ec2.CfnTransitGateway(
            self,
            "SharedTgw",
            # attach OU account VPCs without manual acceptance
            auto_accept_shared_attachments="enable",
            default_route_table_association="enable",
            default_route_table_propagation="enable",
        )

    def _get_default_route_table_id(self) -> str:
        """Look up the TGW default association route table id.

        CloudFormation does not expose the default route table of a TGW, so
        it is read from ``describeTransitGateways`` through a custom resource.
        """
        return cr.AwsCustomResource(
            self,
            "GetSharedTgwDefaultRouteTableId",
            install_latest_aws_sdk=False,
            on_create=cr.AwsSdkCall(
                service="EC2",
                action="describeTransitGateways",
                parameters={"TransitGatewayIds": [self.shared_tgw.attr_id]},
                physical_resource_id=cr.PhysicalResourceId.from_response(
                    DEFAULT_ROUTE_TABLE_ID_PATH,
                ),
            ),
            policy=cr.AwsCustomResourcePolicy.from_sdk_calls(
                resources=cr.AwsCustomResourcePolicy.ANY_RESOURCE,
            ),
            log_retention=logs.RetentionDays.ONE_DAY,
            function_name="getSharedTgwDefaultRouteTableId",
        ).get_response_field(DEFAULT_ROUTE_TABLE_ID_PATH)

    def _share_tgw(self) -> ram.CfnResourceShare:
        """Share the TGW with the prod and dev accounts.

        External principals are not allowed, so sharing within the OU needs
        organization level sharing enabled in the management account.
        """
        ou_config = self._props.ou_config
        return ram.CfnResourceShare(
            self,
            "TgwShare",
            name=self.names.produce_from_stack("TgwShare", self),
            allow_external_principals=False,
            principals=[
                ou_config.dev_account.account_id,
                ou_config.prod_account.account_id,
            ],
            resource_arns=[self.tgw_arn],
        )

    def _attach_to_host_network(self) -> ec2.CfnTransitGatewayPeeringAttachment:
        host = self._props.host_network
        return ec2.CfnTransitGatewayPeeringAttachment(
            self,
            "HostTgwAttachment",
            peer_account_id=host.account_id,
            peer_region=host.tgw_region,
            peer_transit_gateway_id=host.tgw_id,
            transit_gateway_id=self.shared_tgw.attr_id,
            tags=[CfnTag(key="Name", value="attach-to-host-network")],
        )

    def _route_traffic_within_shared_tgw(self) -> ec2.CfnTransitGatewayRoute:
        """Route host network traffic, or all traffic when forced, to the host TGW."""
        destination_cidr = derive_egress_destination_cidr(
            self._props.force_outbound_traffic_through_host_network,
            self._props.host_network.tgw_cidr,
        )
        return ec2.CfnTransitGatewayRoute(
            self,
            "StaticRouteToHostWithinTgw",
            transit_gateway_route_table_id=self.route_table_id,
            destination_cidr_block=destination_cidr,
            transit_gateway_attachment_id=self.host_attachment.attr_transit_gateway_attachment_id,
        )

    @property
    def tgw_arn(self) -> str:
        # AWS::EC2::TransitGateway has no Arn attribute
        return f"arn:aws:ec2:{self.region}:{self.account}:transit-gateway/{self.shared_tgw.ref}"
