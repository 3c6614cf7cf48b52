"""Helpers shared by the OU network and pipeline stacks."""

from .exports import ExportRegistry
from .naming import ResourceNameProducer

__all__ = ["ExportRegistry", "ResourceNameProducer"]
