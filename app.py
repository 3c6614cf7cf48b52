"""Entry point for the OU network infrastructure deployment.

Declares the shared TGW hub, one VPC per OU account and the GHE connection.
Deployment is phased: stacks that need identifiers created by an earlier
phase are only declared once those identifiers are configured.

Environment Configuration Options:
    1. Required OU parameters:
       OU_NAME, SHARED_ACCOUNT_ID, PROD_ACCOUNT_ID, DEV_ACCOUNT_ID,
       FORCE_OUTBOUND_TRAFFIC_THOUGH_HOST_NETWORK, GITHUB_ENDPOINT,
       GITHUB_ORG_NAMES

    2. Phase outputs:
       SHARED_TGW_ID: enables the account VPC stacks
       SHARED_VPC_ID: enables the GHE connection stack

    3. AWS Named Profile:
       AWS_PROFILE: when set, the caller account must belong to the OU

CDK context:
    attached-to-host: "true" once the host network accepted the TGW peering.
"""

import logging
import os

import boto3
from aws_cdk import App, Aspects, Environment
from cdk_nag import AwsSolutionsChecks

from org_unit_infra.common import ExportRegistry
from org_unit_infra.common.utils import retention_from_days
from org_unit_infra.configs import (
    AccountInfo,
    AccountRole,
    OuConfig,
    OuNetworkSettings,
    get_host_network_info,
    load_network_settings,
)
from org_unit_infra.network import (
    GheConnectionStack,
    GheConnectionStackProps,
    SharedTgwStack,
    SharedTgwStackProps,
    VpcStack,
    VpcStackProps,
)
from org_unit_infra.network.vpc_stack import DEFAULT_FLOW_LOGS_RETENTION

logger = logging.getLogger(__name__)

ATTACHED_TO_HOST_CONTEXT_KEY = "attached-to-host"

VPC_STACK_IDS: dict[AccountRole, str] = {
    AccountRole.SHARED: "SharedVpcStack",
    AccountRole.PROD: "ProdVpcStack",
    AccountRole.DEV: "DevVpcStack",
}


def create_deployment_environment(account: AccountInfo) -> Environment:
    """Creates the CDK Environment of an OU account."""
    return Environment(account=account.account_id, region=account.aws_region)


def verify_caller_account(ou_config: OuConfig, aws_profile: str) -> AccountRole:
    """Resolves the role of the account behind an AWS named profile.

    Args:
        ou_config: OU accounts the caller must belong to.
        aws_profile: Named profile from the AWS credentials file.

    Returns:
        Role of the caller account within the OU.

    Raises:
        ConfigurationError: If the caller account is not part of the OU.
    """
    session = boto3.Session(profile_name=aws_profile)
    account_id = session.client("sts").get_caller_identity()["Account"]
    role = ou_config.resolve_role(account_id)
    logger.info("Profile %s resolves to the %s account %s", aws_profile, role.value, account_id)
    return role


def initialize_app(
    settings: OuNetworkSettings | None = None,
    context: dict[str, str] | None = None,
) -> App:
    """Initializes and configures the CDK application.

    Args:
        settings: Validated network settings; loaded from the environment
            when omitted.
        context: Optional CDK context, mostly for tests.

    Returns:
        Configured CDK App instance ready for synthesis.
    """
    settings = settings or load_network_settings()
    ou_config = settings.to_ou_config()
    host_network = get_host_network_info(settings.host_network)
    ghe_certificate_pem = settings.read_tls_certificate()

    aws_profile = os.environ.get("AWS_PROFILE")
    if aws_profile:
        verify_caller_account(ou_config, aws_profile)

    app = App(context=context)
    registry = ExportRegistry()
    shared_env = create_deployment_environment(ou_config.shared_account)

    SharedTgwStack(
        app,
        "SharedTgwStack",
        props=SharedTgwStackProps(
            ou_config=ou_config,
            host_network=host_network,
            is_attachment_ready=app.node.try_get_context(ATTACHED_TO_HOST_CONTEXT_KEY) == "true",
            force_outbound_traffic_through_host_network=settings.force_outbound_traffic_through_host_network,
        ),
        registry=registry,
        env=shared_env,
        description="Shared TGW hub of the OU, peered with the host network",
    )

    if settings.shared_tgw_id:
        flow_logs_retention = (
            retention_from_days(settings.vpc_flowlogs_retention_days)
            if settings.vpc_flowlogs_retention_days
            else DEFAULT_FLOW_LOGS_RETENTION
        )
        vpc_props = VpcStackProps(
            ou_config=ou_config,
            host_network_cidr=host_network.tgw_cidr,
            shared_tgw_id=settings.shared_tgw_id,
            force_outbound_traffic_through_host_network=settings.force_outbound_traffic_through_host_network,
            max_azs_in_prod_account=settings.max_azs_in_prod_account,
            flow_logs_retention=flow_logs_retention,
            flow_logs_kms_arn=settings.vpc_flowlogs_kms_arn,
        )
        for role, stack_id in VPC_STACK_IDS.items():
            VpcStack(
                app,
                stack_id,
                props=vpc_props,
                registry=registry,
                env=create_deployment_environment(ou_config.account_for(role)),
                description=f"VPC of the OU {role.value} account",
            )
    else:
        logger.warning("SHARED_TGW_ID is not set, skipping the account VPC stacks")

    if settings.shared_vpc_id:
        GheConnectionStack(
            app,
            "GheConnectionStack",
            props=GheConnectionStackProps(
                ou_config=ou_config,
                shared_vpc_id=settings.shared_vpc_id,
                ghe_network_cidr=host_network.tgw_cidr,
                ghe_endpoint=settings.github_endpoint,
                ghe_org_names=settings.github_org_names,
                ghe_certificate_pem=ghe_certificate_pem,
            ),
            registry=registry,
            env=shared_env,
            description="GitHub Enterprise connection of the OU",
        )
    else:
        logger.warning("SHARED_VPC_ID is not set, skipping the GHE connection stack")

    logger.info("Declared stacks: %s", [child.node.id for child in app.node.children])
    Aspects.of(app).add(AwsSolutionsChecks(verbose=True))
    return app


def main() -> None:
    """Main entry point for CDK application."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = initialize_app()
    app.synth()


if __name__ == "__main__":
    main()
