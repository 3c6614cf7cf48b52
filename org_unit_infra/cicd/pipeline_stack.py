"""CDK pipeline delivering the IAM permissions application to OU accounts.

The pipeline lives in the OU shared account and pulls its source through
the GHE connection exported by the network GheConnectionStack, then deploys
one stage per target account.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from aws_cdk import Environment, Stack
from aws_cdk import pipelines
from cdk_nag import NagSuppressions
from constructs import Construct

from org_unit_infra.common.exports import ExportRegistry

from .deployment_stage import DeploymentStage
from .iam_permissions_stack import IamPermissionsStackProps

logger = logging.getLogger(__name__)

PIPELINE_NAME = "iam-permissions-pipeline"

SYNTH_COMMANDS = [
    "npm install -g aws-cdk",
    "python -m pip install .",
    "cdk synth --app 'python pipeline_app.py'",
]


@dataclass(frozen=True)
class DeploymentTarget:
    """Account and region a pipeline stage deploys into."""

    account_id: str
    aws_region: str


@dataclass(frozen=True)
class PipelineStackProps:
    """Configuration properties for the IAM permissions pipeline.

    Attributes:
        account_principal_for_assuming_roles: Account allowed to assume the
            deployed read-only roles.
        github_repository: ``owner/name`` of the source repository.
        github_branch: Branch the pipeline tracks.
        ghe_connection_export_name: Export holding the GHE connection ARN.
        targets: Deployment targets keyed by stage name, deployed in order.
    """

    account_principal_for_assuming_roles: str
    github_repository: str
    github_branch: str = "main"
    ghe_connection_export_name: str = "gheConnectionArn"
    targets: dict[str, DeploymentTarget] = field(default_factory=dict)


class PipelineStack(Stack):
    """The stack that defines the application pipeline.

    Attributes:
        props: Pipeline configuration.
        pipeline: The CDK pipeline.
        stages: Deployment stages keyed by stage name.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        props: PipelineStackProps,
        **kwargs: Any,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.props = props

        build_step = pipelines.CodeBuildStep(
            "Build",
            input=pipelines.CodePipelineSource.connection(
                props.github_repository,
                props.github_branch,
                connection_arn=ExportRegistry.import_value(props.ghe_connection_export_name),
                code_build_clone_output=True,
            ),
            commands=SYNTH_COMMANDS,
            env=self.synth_environment(props),
        )

        self.pipeline = pipelines.CodePipeline(
            self,
            "Pipeline",
            pipeline_name=PIPELINE_NAME,
            # encrypt artifacts in S3 across deployment accounts
            cross_account_keys=True,
            synth=build_step,
        )

        self.stages: dict[str, DeploymentStage] = {}
        for stage_name, target in props.targets.items():
            stage = DeploymentStage(
                self,
                stage_name,
                stack_props=IamPermissionsStackProps(
                    account_principal_for_assuming_roles=props.account_principal_for_assuming_roles,
                    role_name_suffix=stage_name,
                ),
                env=Environment(account=target.account_id, region=target.aws_region),
            )
            self.pipeline.add_stage(stage)
            self.stages[stage_name] = stage
            logger.info(
                "%s: stage %s deploys to %s/%s",
                construct_id,
                stage_name,
                target.account_id,
                target.aws_region,
            )

        NagSuppressions.add_stack_suppressions(
            stack=self,
            suppressions=[
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "CDK pipelines grant wildcard artifact and log permissions",
                },
                {
                    "id": "AwsSolutions-S1",
                    "reason": "Pipeline artifact bucket does not need server access logs",
                },
                {
                    "id": "AwsSolutions-KMS5",
                    "reason": "Cross-account artifact key rotation is managed by CDK pipelines",
                },
                {
                    "id": "AwsSolutions-CB4",
                    "reason": "CodeBuild projects use the pipeline artifact key",
                },
            ],
        )

    def synth_environment(self, props: PipelineStackProps) -> dict[str, str]:
        """Variables ``pipeline_app.py`` reads when the pipeline synthesizes itself.

        Stage targets are exposed as ``{STAGE}_ACCOUNT_ID``, so the ``dev``
        and ``prod`` stages map to DEV_ACCOUNT_ID and PROD_ACCOUNT_ID.
        """
        env = {
            "CREDENTIALS_ACCOUNT_ID": props.account_principal_for_assuming_roles,
            "SHARED_ACCOUNT_ID": self.account,
            "AWS_REGION": self.region,
            "GITHUB_REPOSITORY": props.github_repository,
            "GITHUB_BRANCH": props.github_branch,
            "GHE_CONNECTION_EXPORT_NAME": props.ghe_connection_export_name,
        }
        for stage_name, target in props.targets.items():
            env[f"{stage_name.upper()}_ACCOUNT_ID"] = target.account_id
        return env
