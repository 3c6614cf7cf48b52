"""Resource name producer shared by all OU stacks."""

from aws_cdk import Stack


class ResourceNameProducer:
    """Produces ``{prefix}-{account}-{region}-{name}`` resource names."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def produce_from_params(self, human_name: str, account_id: str, aws_region: str) -> str:
        return f"{self.prefix}-{account_id}-{aws_region}-{human_name}"

    def produce_from_stack(self, human_name: str, stack: Stack) -> str:
        return self.produce_from_params(human_name, stack.account, stack.region)
