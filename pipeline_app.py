"""Entry point for the IAM permissions pipeline.

The pipeline deploys into the OU shared account and sources this repository
through the GHE connection exported by the network GheConnectionStack.

Environment Configuration Options:
    CREDENTIALS_ACCOUNT_ID: Account allowed to assume the read-only roles
    SHARED_ACCOUNT_ID, PROD_ACCOUNT_ID, DEV_ACCOUNT_ID: OU accounts
    GITHUB_REPOSITORY: ``owner/name`` of the pipeline source
    GITHUB_BRANCH: Branch the pipeline tracks (default ``main``)
    AWS_REGION: Region of the pipeline and its targets (default ``us-west-2``)
"""

import logging

from aws_cdk import App, Aspects, Environment
from cdk_nag import AwsSolutionsChecks

from org_unit_infra.cicd import DeploymentTarget, PipelineStack, PipelineStackProps
from org_unit_infra.configs import PipelineSettings, load_pipeline_settings


def initialize_app(settings: PipelineSettings | None = None) -> App:
    """Initializes the pipeline CDK application.

    Args:
        settings: Validated pipeline settings; loaded from the environment
            when omitted.

    Returns:
        Configured CDK App instance ready for synthesis.
    """
    settings = settings or load_pipeline_settings()
    app = App()

    PipelineStack(
        app,
        "IamPermissionsPipelineStack",
        props=PipelineStackProps(
            account_principal_for_assuming_roles=settings.credentials_account_id,
            github_repository=settings.github_repository,
            github_branch=settings.github_branch,
            ghe_connection_export_name=settings.ghe_connection_export_name,
            targets={
                "dev": DeploymentTarget(settings.dev_account_id, settings.aws_region),
                "prod": DeploymentTarget(settings.prod_account_id, settings.aws_region),
            },
        ),
        env=Environment(account=settings.shared_account_id, region=settings.aws_region),
        description="Pipeline deploying read-only IAM roles to the OU accounts",
    )

    Aspects.of(app).add(AwsSolutionsChecks(verbose=True))
    return app


def main() -> None:
    """Main entry point for the pipeline CDK application."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = initialize_app()
    app.synth()


if __name__ == "__main__":
    main()
