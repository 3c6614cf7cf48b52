"""Read-only IAM role deployed by the IAM permissions pipeline."""

from dataclasses import dataclass
from typing import Any

from aws_cdk import CfnOutput, Stack
from aws_cdk import aws_iam as iam
from cdk_nag import NagSuppressions
from constructs import Construct


@dataclass(frozen=True)
class IamPermissionsStackProps:
    """Configuration properties for the IAM permissions stack.

    Attributes:
        account_principal_for_assuming_roles: Account allowed to assume the role.
        role_name_suffix: Suffix distinguishing the role per deployment stage.
    """

    account_principal_for_assuming_roles: str
    role_name_suffix: str


class IamPermissionsStack(Stack):
    """A stack holding a read-only role assumable from the credentials account."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: IamPermissionsStackProps,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.read_only_role = iam.Role(
            self,
            "ReadOnlyIamRole",
            role_name=f"read-only-iam-role-{props.role_name_suffix}",
            assumed_by=iam.AccountPrincipal(props.account_principal_for_assuming_roles),
            description="Provides read only access to resources",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("ReadOnlyAccess"),
            ],
        )
        NagSuppressions.add_resource_suppressions(
            self.read_only_role,
            [
                {
                    "id": "AwsSolutions-IAM4",
                    "reason": "ReadOnlyAccess is the AWS managed policy this role exists to grant.",
                },
            ],
        )

        CfnOutput(
            self,
            "ReadOnlyRoleArn",
            value=self.read_only_role.role_arn,
            description="ARN of the read-only IAM role",
        )
