"""End-to-end KBOM generation: validate, assemble, route, serialize."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, TextIO

from kbom import assembler, serializer
from kbom.config import GenerateConfig
from kbom.models import KBOM, Tool
from kbom.options import OutputFormat, OutputTarget
from kbom.router import open_sink
from kbom.source import FactSource

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Outcome of a successful run."""

    document: KBOM
    format: OutputFormat
    target: OutputTarget
    path: Optional[Path] = None


async def generate_async(
    source: FactSource,
    config: GenerateConfig,
    *,
    stdout: Optional[TextIO] = None,
    tool: Optional[Tool] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> GenerateResult:
    """Generate one KBOM and write it to the configured sink.

    Format and output are validated first, so a bad setting fails the run
    before the cluster is queried or any file is created.
    """
    settings = config.resolve()

    kwargs = {}
    if clock is not None:
        kwargs["clock"] = clock
    document = await assembler.assemble(
        source,
        settings.full,
        tool=tool,
        timeout=settings.timeout,
        **kwargs,
    )

    path = None
    with open_sink(
        settings.target, settings.out_path, document, settings.format, stdout=stdout
    ) as sink:
        serializer.write(document, settings.format, sink)
        if settings.target is OutputTarget.FILE:
            path = Path(sink.name)

    if path is not None:
        logger.info(f"KBOM written to {path}")
    return GenerateResult(
        document=document,
        format=settings.format,
        target=settings.target,
        path=path,
    )


def generate(
    source: FactSource,
    config: GenerateConfig,
    *,
    stdout: Optional[TextIO] = None,
    tool: Optional[Tool] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> GenerateResult:
    """Blocking wrapper around :func:`generate_async`."""
    return asyncio.run(
        generate_async(source, config, stdout=stdout, tool=tool, clock=clock)
    )
