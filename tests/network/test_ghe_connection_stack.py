"""Test suite for the GitHub Enterprise connection stack.

The shared VPC is resolved with ``Vpc.from_lookup``; without cached context
CDK substitutes a dummy VPC with two private subnets, which is what these
tests synthesize against.
"""

import json

import pytest
from aws_cdk import App
from aws_cdk.assertions import Match, Template

from org_unit_infra.configs import AccountRole, ConfigurationError
from org_unit_infra.network.ghe_connection_stack import (
    CONNECTION_NAME_MAX_LENGTH,
    GHE_CONNECTION_EXPORT_NAME,
    GheConnectionStack,
    GheConnectionStackProps,
)

GHE_CIDR = "172.16.0.0/24"
PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


@pytest.fixture
def make_ghe_stack(ou_config, registry, account_environments):
    """Factory creating the GHE connection stack."""

    def _make(org_names=("payments-core", "payments-web"), certificate=None, role=AccountRole.SHARED):
        props = GheConnectionStackProps(
            ou_config=ou_config,
            shared_vpc_id="vpc-0123456789abcdef0",
            ghe_network_cidr=GHE_CIDR,
            ghe_endpoint="https://github.example.com",
            ghe_org_names=list(org_names),
            ghe_certificate_pem=certificate,
        )
        return GheConnectionStack(
            App(),
            "TestGheConnectionStack",
            props=props,
            registry=registry,
            env=account_environments[role],
        )

    return _make


class TestGheHost:
    """Test suite for the connection host and its network access."""

    def test_security_group_allows_https_from_ghe(self, make_ghe_stack):
        template = Template.from_stack(make_ghe_stack())

        template.has_resource_properties(
            "AWS::EC2::SecurityGroup",
            {
                "SecurityGroupIngress": Match.array_with(
                    [
                        Match.object_like(
                            {
                                "CidrIp": GHE_CIDR,
                                "FromPort": 443,
                                "ToPort": 443,
                                "IpProtocol": "tcp",
                            }
                        ),
                    ]
                ),
            },
        )

    def test_host_created_through_custom_resource(self, make_ghe_stack):
        """Verify the host is created inside the VPC for a GHE server."""
        template = Template.from_stack(make_ghe_stack())

        template.resource_count_is("Custom::AWS", 1)
        rendered = json.dumps(template.to_json())
        assert "createHost" in rendered
        assert "deleteHost" in rendered
        assert "GitHubEnterpriseServer" in rendered
        assert "TlsCertificate" not in rendered

    def test_host_uses_tls_certificate_when_configured(self, make_ghe_stack):
        template = Template.from_stack(make_ghe_stack(certificate=PEM))

        assert "TlsCertificate" in json.dumps(template.to_json())

    def test_rejects_non_shared_account(self, make_ghe_stack):
        with pytest.raises(ConfigurationError, match="Shared OU account"):
            make_ghe_stack(role=AccountRole.DEV)


class TestGheConnections:
    """Test suite for the per-org connections."""

    def test_one_connection_per_org(self, make_ghe_stack):
        stack = make_ghe_stack()
        template = Template.from_stack(stack)

        template.resource_count_is("AWS::CodeStarConnections::Connection", 2)
        assert set(stack.connections) == {"payments-core", "payments-web"}

    def test_connection_name_truncated(self, make_ghe_stack):
        """Verify connection names fit the CodeStar 32 character limit."""
        stack = make_ghe_stack()
        template = Template.from_stack(stack)

        name = stack.connection_name("payments-core")
        assert name == "payments-core+payments-111111111"
        assert len(name) == CONNECTION_NAME_MAX_LENGTH
        template.has_resource_properties(
            "AWS::CodeStarConnections::Connection",
            {"ConnectionName": name},
        )

    def test_short_connection_name_kept(self, make_ghe_stack):
        stack = make_ghe_stack(org_names=["web"])
        assert stack.connection_name("web") == "web+payments-111111111111"

    def test_exports_per_org_and_well_known_arn(self, make_ghe_stack, registry):
        template = Template.from_stack(make_ghe_stack())

        template.has_output("*", {"Export": {"Name": GHE_CONNECTION_EXPORT_NAME}})
        for org_name in ("payments-core", "payments-web"):
            for kind in ("ConnArnFor", "ConnUrlFor"):
                export_name = f"payments-111111111111-us-west-2-{kind}-{org_name}"
                template.has_output("*", {"Export": {"Name": export_name}})
                assert export_name in registry.names()

    def test_no_well_known_export_without_orgs(self, make_ghe_stack, registry):
        template = Template.from_stack(make_ghe_stack(org_names=[]))

        template.resource_count_is("AWS::CodeStarConnections::Connection", 0)
        assert GHE_CONNECTION_EXPORT_NAME not in registry.names()

    def test_cicd_domain_tag(self, make_ghe_stack):
        template = Template.from_stack(make_ghe_stack())

        template.has_resource_properties(
            "AWS::EC2::SecurityGroup",
            {"Tags": Match.array_with([{"Key": "Domain", "Value": "CICD"}])},
        )
