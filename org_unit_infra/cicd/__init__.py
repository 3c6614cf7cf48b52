"""IAM permissions pipeline consuming the OU GHE connection."""

from .deployment_stage import DeploymentStage
from .iam_permissions_stack import IamPermissionsStack, IamPermissionsStackProps
from .pipeline_stack import DeploymentTarget, PipelineStack, PipelineStackProps

__all__ = [
    "DeploymentStage",
    "DeploymentTarget",
    "IamPermissionsStack",
    "IamPermissionsStackProps",
    "PipelineStack",
    "PipelineStackProps",
]
