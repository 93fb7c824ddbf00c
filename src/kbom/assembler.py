"""Assemble a KBOM document from a fact source."""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from kbom.config import BOM_FORMAT, SPEC_VERSION, default_tool
from kbom.errors import CollectionError
from kbom.models import KBOM, Cluster, Resources, Tool
from kbom.source import FactSource

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


async def _collect(
    calls: dict[str, Awaitable[Any]],
    timeout: Optional[float] = None,
) -> dict[str, Any]:
    """Run the calls concurrently and return their results by step.

    The first failure cancels everything still running and is raised as a
    CollectionError. If several calls have failed by the time we look, the
    one that comes first in ``calls`` order wins.
    """
    async def run(step: str, call: Awaitable[Any]) -> Any:
        result = await call
        logger.debug(f"Collected {step}")
        return result

    tasks = {
        step: asyncio.ensure_future(run(step, call)) for step, call in calls.items()
    }
    try:
        done, pending = await asyncio.wait(
            tasks.values(),
            timeout=timeout,
            return_when=asyncio.FIRST_EXCEPTION,
        )

        for step, task in tasks.items():
            if task in done and task.exception() is not None:
                raise CollectionError(step, task.exception()) from task.exception()

        if pending:
            step = next(step for step, task in tasks.items() if task in pending)
            raise CollectionError(
                step, TimeoutError(f"timed out after {timeout} seconds")
            )

        return {step: task.result() for step, task in tasks.items()}
    finally:
        for task in tasks.values():
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)


async def assemble(
    source: FactSource,
    full: bool = True,
    *,
    tool: Optional[Tool] = None,
    bom_format: str = BOM_FORMAT,
    spec_version: str = SPEC_VERSION,
    clock: Callable[[], datetime] = _utcnow,
    id_factory: Callable[[], str] = _new_id,
    timeout: Optional[float] = None,
) -> KBOM:
    """Collect all cluster facts and build a KBOM document.

    The document id and timestamp are fixed before any call is made. The
    five fact source calls then run concurrently; nothing is returned
    unless all of them succeed.

    Args:
        source: Where cluster facts come from.
        full: Whether nodes and resources carry full detail.
        tool: Identity of the generating tool (default: this build).
        bom_format: Document dialect identifier.
        spec_version: Document dialect version.
        clock: Returns the generation timestamp; naive values are taken as UTC.
        id_factory: Returns a fresh document id.
        timeout: Seconds allowed for all collection calls together.

    Returns:
        The fully populated document.

    Raises:
        CollectionError: If any call fails or the timeout expires.
    """
    document_id = id_factory()
    generated_at = clock()
    if generated_at.tzinfo is None:
        generated_at = generated_at.replace(tzinfo=timezone.utc)
    logger.debug(f"Assembling KBOM {document_id} (full={full})")

    results = await _collect(
        {
            "metadata": source.metadata(),
            "nodes": source.all_nodes(full),
            "location": source.location(),
            "images": source.all_images(),
            "resources": source.all_resources(full),
        },
        timeout=timeout,
    )
    k8s_version, ca_cert_digest = results["metadata"]

    document = KBOM(
        id=document_id,
        bom_format=bom_format,
        spec_version=spec_version,
        generated_at=generated_at,
        generated_by=tool or default_tool(),
        cluster=Cluster(
            location=results["location"],
            k8s_version=k8s_version,
            ca_cert_digest=ca_cert_digest,
            nodes=list(results["nodes"]),
            resources=Resources(
                images=list(results["images"]),
                resources=list(results["resources"]),
            ),
        ),
    )

    logger.info(
        f"Collected {document.cluster.nodes_count} node(s), "
        f"{len(document.cluster.resources.images)} image(s), "
        f"{len(document.cluster.resources.resources)} resource kind(s)"
    )
    return document
