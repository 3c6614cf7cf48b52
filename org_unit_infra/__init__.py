"""CDK infrastructure for an AWS Organizational Unit network and pipelines."""

__version__ = "0.1.0"
