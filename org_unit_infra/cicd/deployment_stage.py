"""Deployment stage of the IAM permissions application."""

from typing import Any

from aws_cdk import Stage
from constructs import Construct

from .iam_permissions_stack import IamPermissionsStack, IamPermissionsStackProps


class DeploymentStage(Stage):
    """Stage deploying the IAM permissions stack into one target account."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        stack_props: IamPermissionsStackProps,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.iam_permissions_stack = IamPermissionsStack(
            self,
            "IamPermissionsStack",
            props=stack_props,
        )
