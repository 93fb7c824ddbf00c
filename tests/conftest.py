"""Shared fixtures for kbom tests."""

import asyncio
from datetime import datetime, timezone
from typing import Optional

import pytest

from kbom.models import (
    KBOM,
    Capacity,
    Cluster,
    Image,
    Location,
    Node,
    Resource,
    ResourceList,
    Resources,
    Tool,
)
from kbom.source import FactSource

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
FIXED_ID = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"
CA_DIGEST = "abcdef1234567890"


def make_node(index: int, full: bool) -> Node:
    node = Node(
        name=f"node-{index}",
        type="m5.large",
        hostname=f"ip-10-0-0-{index}",
        architecture="amd64",
        kubelet_version="v1.28.3",
        operating_system="linux",
        os_image="Bottlerocket OS 1.15.1",
    )
    if full:
        node.capacity = Capacity(cpu="2", memory="8Gi", pods="110", ephemeral_storage="20Gi")
        node.allocatable = Capacity(cpu="1930m", memory="7Gi", pods="110", ephemeral_storage="18Gi")
        node.labels = {"kubernetes.io/hostname": f"ip-10-0-0-{index}"}
        node.annotations = {}
    return node


def make_image(index: int) -> Image:
    return Image(
        full_name=f"registry.example.com/app-{index}:1.{index}",
        name=f"registry.example.com/app-{index}",
        version=f"1.{index}",
        digest=f"sha256:{index:064x}",
        controller_urn=f"ReplicaSet/default/app-{index}",
        pod_urn=f"Pod/default/app-{index}-abc",
        container_name=f"app-{index}",
    )


def make_resource_list(index: int, full: bool) -> ResourceList:
    inventory = ResourceList(
        kind=f"Kind{index}",
        api_version="v1",
        namespaced=True,
        count=2,
    )
    if full:
        inventory.resources = [
            Resource(name=f"obj-{index}-a", namespace="default"),
            Resource(name=f"obj-{index}-b", namespace="kube-system"),
        ]
    return inventory


class FakeSource(FactSource):
    """In-memory fact source that records calls and can fail on demand."""

    def __init__(
        self,
        nodes: int = 3,
        images: int = 5,
        resources: int = 10,
        k8s_version: str = "v1.28.3-eks-4f4795d",
        ca_cert_digest: str = CA_DIGEST,
        location: Optional[Location] = None,
        errors: Optional[dict[str, Exception]] = None,
        delays: Optional[dict[str, float]] = None,
    ):
        self.node_count = nodes
        self.image_count = images
        self.resource_count = resources
        self.k8s_version = k8s_version
        self.ca_cert_digest = ca_cert_digest
        self._location = location or Location(name="aws", region="us-east-1", zones=["us-east-1a"])
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls: list[tuple[str, tuple]] = []
        self.cancelled: list[str] = []
        self.completed: list[str] = []

    async def _step(self, step: str, *args):
        self.calls.append((step, args))
        try:
            await asyncio.sleep(self.delays.get(step, 0))
        except asyncio.CancelledError:
            self.cancelled.append(step)
            raise
        if step in self.errors:
            raise self.errors[step]
        self.completed.append(step)

    async def metadata(self) -> tuple[str, str]:
        await self._step("metadata")
        return self.k8s_version, self.ca_cert_digest

    async def all_nodes(self, full: bool) -> list[Node]:
        await self._step("nodes", full)
        return [make_node(i, full) for i in range(self.node_count)]

    async def location(self) -> Location:
        await self._step("location")
        return self._location

    async def all_images(self) -> list[Image]:
        await self._step("images")
        return [make_image(i) for i in range(self.image_count)]

    async def all_resources(self, full: bool) -> list[ResourceList]:
        await self._step("resources", full)
        return [make_resource_list(i, full) for i in range(self.resource_count)]


@pytest.fixture
def fake_source():
    """A fact source for a small healthy cluster."""
    return FakeSource()


@pytest.fixture
def tool():
    """A fixed tool identity."""
    return Tool(
        vendor="KSOC Labs",
        name="kbom",
        build_time="2024-01-01T00:00:00Z",
        version="0.2.0",
        commit="1a2b3c4d",
        commit_time="2023-12-31T12:00:00Z",
    )


@pytest.fixture
def sample_document(tool):
    """A fully populated document."""
    return KBOM(
        id=FIXED_ID,
        bom_format="ksoc",
        spec_version="0.1",
        generated_at=FIXED_TIME,
        generated_by=tool,
        cluster=Cluster(
            location=Location(name="gcp", region="europe-west1", zones=["europe-west1-b", "europe-west1-c"]),
            k8s_version="v1.27.8-gke.1067004",
            ca_cert_digest=CA_DIGEST,
            nodes=[make_node(0, True), make_node(1, False)],
            resources=Resources(
                images=[make_image(0), make_image(1)],
                resources=[make_resource_list(0, True), make_resource_list(1, False)],
            ),
        ),
    )
