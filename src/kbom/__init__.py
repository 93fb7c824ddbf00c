"""kbom - Kubernetes Bill of Materials generator."""

__version__ = "0.2.0"

from kbom.models import KBOM, Cluster, Image, Location, Node, Resource, ResourceList, Resources, Tool
from kbom.options import OutputFormat, OutputTarget
from kbom.errors import (
    KBOMError,
    CollectionError,
    SinkError,
    UnsupportedFormatError,
    UnsupportedOutputError,
)
from kbom.source import FactSource
from kbom.assembler import assemble
from kbom.generate import GenerateResult, generate, generate_async

__all__ = [
    "__version__",
    "KBOM",
    "Cluster",
    "Image",
    "Location",
    "Node",
    "Resource",
    "ResourceList",
    "Resources",
    "Tool",
    "OutputFormat",
    "OutputTarget",
    "KBOMError",
    "CollectionError",
    "SinkError",
    "UnsupportedFormatError",
    "UnsupportedOutputError",
    "FactSource",
    "assemble",
    "generate",
    "generate_async",
    "GenerateResult",
]
