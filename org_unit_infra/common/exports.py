"""Export registry for cross-stack values of the OU apps.

Values shared between stacks are published once as CloudFormation exports
and recorded in an explicit registry handed from stack to stack, so that a
second export under the same name fails at synthesis time instead of at
CloudFormation deployment time.
"""

import logging

from aws_cdk import CfnOutput, Fn
from constructs import Construct

from org_unit_infra.configs.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ExportRegistry:
    """Put-once / get-many registry of CloudFormation exports.

    Attributes:
        exports: Published values keyed by export name.
    """

    def __init__(self) -> None:
        self.exports: dict[str, str] = {}

    def publish(
        self,
        scope: Construct,
        export_name: str,
        value: str,
        description: str | None = None,
    ) -> CfnOutput:
        """Declare a CloudFormation export and record it.

        Args:
            scope: Construct owning the output.
            export_name: Export name, unique across the registry.
            value: Exported value (token or literal).
            description: Optional output description.

        Returns:
            The declared output.

        Raises:
            ConfigurationError: If ``export_name`` was already published.
        """
        if export_name in self.exports:
            msg = f"Export name [{export_name}] is already published by another resource."
            raise ConfigurationError(msg)

        output = CfnOutput(
            scope,
            export_name.replace("/", "-"),
            value=value,
            export_name=export_name,
            description=description,
        )
        self.exports[export_name] = value
        logger.debug("Published export %s", export_name)
        return output

    def get(self, export_name: str) -> str:
        """Value published under ``export_name`` within this app.

        Raises:
            ConfigurationError: If nothing was published under ``export_name``.
        """
        try:
            return self.exports[export_name]
        except KeyError:
            msg = f"Export [{export_name}] was not published. Known exports: {sorted(self.exports)}."
            raise ConfigurationError(msg) from None

    def names(self) -> list[str]:
        return list(self.exports)

    @staticmethod
    def import_value(export_name: str) -> str:
        """Import token for an export published by another deployment."""
        return Fn.import_value(export_name)
