"""GitHub Enterprise connection stack for an AWS Organizational Unit.

Deploys a single CodeStar connections host inside the shared VPC to allow
connectivity from the company GHE server into AWS, plus one connection per
GitHub org. Every OU needs one GHE connection in its shared account, where
all the code delivery pipelines live.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from aws_cdk import Fn, Stack
from aws_cdk import aws_codestarconnections as codestarconnections
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import custom_resources as cr
from cdk_nag import NagSuppressions
from constructs import Construct

from org_unit_infra.common.exports import ExportRegistry
from org_unit_infra.common.naming import ResourceNameProducer
from org_unit_infra.common.utils import apply_ou_tags
from org_unit_infra.configs.account_config import AccountRole, OuConfig

logger = logging.getLogger(__name__)

# Pipeline stacks import the connection ARN under this name
GHE_CONNECTION_EXPORT_NAME = "gheConnectionArn"
CONNECTION_NAME_MAX_LENGTH = 32


@dataclass(frozen=True)
class GheConnectionStackProps:
    """GHE connection parameters.

    Attributes:
        ou_config: OU accounts; the stack must deploy into the shared account.
        shared_vpc_id: Id of the shared account VPC hosting the connection host.
        ghe_network_cidr: CIDR the GHE server connects from.
        ghe_org_names: GitHub org names the OU needs to be connected to.
        ghe_endpoint: GHE server endpoint URL.
        ghe_certificate_pem: TLS certificate, only needed for self-signed GHE servers.
    """

    ou_config: OuConfig
    shared_vpc_id: str
    ghe_network_cidr: str
    ghe_endpoint: str
    ghe_org_names: list[str] = field(default_factory=list)
    ghe_certificate_pem: str | None = None


class GheConnectionStack(Stack):
    """CodeStar connections host and per-org connections to a GHE server.

    Attributes:
        shared_vpc: Shared account VPC, looked up by id.
        security_group: Security group of the connection host.
        host: Custom resource managing the CodeStar connections host.
        connections: Connections keyed by GitHub org name.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: GheConnectionStackProps,
        registry: ExportRegistry,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        props.ou_config.require_role(self.account, AccountRole.SHARED)
        self._props = props
        self.names = ResourceNameProducer(props.ou_config.ou_name)

        self.shared_vpc = ec2.Vpc.from_lookup(self, "SharedVpc", vpc_id=props.shared_vpc_id)
        self.security_group = self._create_security_group()
        self.host = self._create_codestar_host()

        self.connections: dict[str, codestarconnections.CfnConnection] = {}
        for org_name in props.ghe_org_names:
            self.connections[org_name] = self._create_connection(org_name, registry)

        if props.ghe_org_names:
            primary_org = props.ghe_org_names[0]
            registry.publish(
                self,
                GHE_CONNECTION_EXPORT_NAME,
                self.connections[primary_org].attr_connection_arn,
                description=f"GHE connection ARN for {primary_org}",
            )
        logger.info(
            "%s: GHE connections for orgs %s via %s",
            construct_id,
            props.ghe_org_names,
            props.ghe_endpoint,
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
                    "reason": "Host VPC configuration needs EC2 network interface and endpoint actions on any resource",
                },
                {
                    "id": "AwsSolutions-L1",
                    "reason": "Custom resource provider runtime is managed by CDK",
                },
            ],
        )
        apply_ou_tags(self, props.ou_config.ou_name, "CICD")

    def _create_security_group(self) -> ec2.SecurityGroup:
        security_group = ec2.SecurityGroup(
            self,
            "SecurityGroupForGhe",
            vpc=self.shared_vpc,
            allow_all_outbound=True,
            description="security group for a GHE host which communicates with the GHE server",
        )
        security_group.add_ingress_rule(
            ec2.Peer.ipv4(self._props.ghe_network_cidr),
            ec2.Port.tcp(443),
            "allow HTTPS traffic from GHE",
        )
        return security_group

    def _create_codestar_host(self) -> cr.AwsCustomResource:
        """Create the CodeStar connections host inside the shared VPC.

        CloudFormation cannot create a host with a VPC configuration, so
        the host is managed through ``createHost``/``deleteHost`` calls.
        """
        vpc_configuration: dict[str, Any] = {
            "VpcId": self.shared_vpc.vpc_id,
            "SubnetIds": [subnet.subnet_id for subnet in self.shared_vpc.private_subnets],
            "SecurityGroupIds": [self.security_group.security_group_id],
        }
        if self._props.ghe_certificate_pem:
            vpc_configuration["TlsCertificate"] = self._props.ghe_certificate_pem

        return cr.AwsCustomResource(
            self,
            "CodestarHost",
            install_latest_aws_sdk=False,
            on_create=cr.AwsSdkCall(
                service="CodeStarconnections",
                action="createHost",
                parameters={
                    "Name": self.names.produce_from_stack("CodestarHost", self),
                    "ProviderEndpoint": self._props.ghe_endpoint,
                    "ProviderType": "GitHubEnterpriseServer",
                    "VpcConfiguration": vpc_configuration,
                },
                physical_resource_id=cr.PhysicalResourceId.from_response("HostArn"),
            ),
            on_delete=cr.AwsSdkCall(
                service="CodeStarconnections",
                action="deleteHost",
                ignore_error_codes_matching="ValidationException",
                parameters={"HostArn": cr.PhysicalResourceIdReference()},
            ),
            policy=cr.AwsCustomResourcePolicy.from_statements(
                [
                    iam.PolicyStatement(
                        effect=iam.Effect.ALLOW,
                        actions=[
                            "codestar-connections:CreateHost",
                            "codestar-connections:DeleteHost",
                        ],
                        resources=[
                            f"arn:aws:codestar-connections:{self.region}:{self.account}:*",
                        ],
                    ),
                    iam.PolicyStatement(
                        effect=iam.Effect.ALLOW,
                        actions=[
                            "ec2:CreateNetworkInterface",
                            "ec2:DescribeNetworkInterfaces",
                            "ec2:DeleteNetworkInterface",
                            "ec2:CreateVpcEndpoint",
                            "ec2:DeleteVpcEndpoints",
                            "ec2:DescribeVpcEndpoints",
                            "ec2:CreateTags",
                            "ec2:DescribeSubnets",
                            "ec2:DescribeVpcs",
                            "ec2:DescribeDhcpOptions",
                        ],
                        resources=["*"],
                    ),
                ],
            ),
        )

    def _create_connection(
        self,
        org_name: str,
        registry: ExportRegistry,
    ) -> codestarconnections.CfnConnection:
        connection = codestarconnections.CfnConnection(
            self,
            f"ConnToGheFor-{org_name}",
            connection_name=self.connection_name(org_name),
            host_arn=self.host.get_response_field("HostArn"),
        )

        registry.publish(
            self,
            self.names.produce_from_stack(f"ConnArnFor-{org_name}", self),
            connection.attr_connection_arn,
            description=f"GHE connection ARN for {org_name}",
        )

        # Connections must be activated manually from the console
        connection_id = Fn.select(1, Fn.split("/", connection.attr_connection_arn))
        registry.publish(
            self,
            self.names.produce_from_stack(f"ConnUrlFor-{org_name}", self),
            f"https://{self.region}.console.aws.amazon.com/codesuite/settings/"
            f"{self.account}/{self.region}/connections/{connection_id}",
            description=f"Console URL to activate the GHE connection for {org_name}",
        )
        return connection

    def connection_name(self, org_name: str) -> str:
        name = f"{org_name}+{self._props.ou_config.ou_name}-{self.account}"
        return name[:CONNECTION_NAME_MAX_LENGTH]
