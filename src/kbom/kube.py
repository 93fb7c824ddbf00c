"""Fact source backed by the Kubernetes API."""

import asyncio
import hashlib
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from kubernetes import client, config
from kubernetes.dynamic import DynamicClient

from kbom.models import Capacity, Image, Location, Node, Resource, ResourceList
from kbom.source import FactSource

logger = logging.getLogger(__name__)

REGION_LABELS = (
    "topology.kubernetes.io/region",
    "failure-domain.beta.kubernetes.io/region",
)
ZONE_LABELS = (
    "topology.kubernetes.io/zone",
    "failure-domain.beta.kubernetes.io/zone",
)
INSTANCE_TYPE_LABELS = (
    "node.kubernetes.io/instance-type",
    "beta.kubernetes.io/instance-type",
)
HOSTNAME_LABEL = "kubernetes.io/hostname"

# providerID scheme -> location name
PROVIDER_NAMES = {
    "aws": "aws",
    "gce": "gcp",
    "azure": "azure",
    "digitalocean": "digitalocean",
    "linode": "linode",
    "openstack": "openstack",
    "vsphere": "vsphere",
    "kind": "kind",
}
ON_PREM = "on-prem"


def _first_label(labels: dict[str, str], keys: tuple[str, ...]) -> str:
    for key in keys:
        if labels.get(key):
            return labels[key]
    return ""


def _capacity(quantities: Optional[dict[str, str]]) -> Capacity:
    quantities = quantities or {}
    return Capacity(
        cpu=str(quantities.get("cpu", "")),
        memory=str(quantities.get("memory", "")),
        pods=str(quantities.get("pods", "")),
        ephemeral_storage=str(quantities.get("ephemeral-storage", "")),
    )


def split_image(full_name: str) -> tuple[str, str]:
    """Split an image reference into name and tag (or digest)."""
    name = full_name
    if "@" in name:
        name, digest = name.split("@", 1)
        if ":" not in name.rsplit("/", 1)[-1]:
            return name, digest
    last = name.rsplit("/", 1)[-1]
    if ":" in last:
        repo, tag = name.rsplit(":", 1)
        return repo, tag
    return name, "latest"


def image_digest(image_id: Optional[str]) -> str:
    """Extract ``sha256:...`` from a container status imageID."""
    if not image_id:
        return ""
    if "@" in image_id:
        return image_id.split("@", 1)[1]
    if image_id.startswith("sha256:"):
        return image_id
    return ""


def provider_name(provider_id: Optional[str]) -> str:
    """Map a node providerID such as ``aws:///us-east-1a/i-123`` to a provider."""
    if not provider_id or "://" not in provider_id:
        return ON_PREM
    scheme = provider_id.split("://", 1)[0].lower()
    return PROVIDER_NAMES.get(scheme, scheme or ON_PREM)


def _urn(kind: str, namespace: Optional[str], name: str) -> str:
    return f"{kind}/{namespace or ''}/{name}"


class KubernetesFactSource(FactSource):
    """Collects cluster facts through the official Kubernetes client.

    The client is synchronous, so each call runs in a worker thread.
    """

    def __init__(
        self,
        kubeconfig: Optional[str] = None,
        context: Optional[str] = None,
        in_cluster: bool = False,
    ) -> None:
        """Initialize the fact source.

        Args:
            kubeconfig: Path to kubeconfig file (default: ~/.kube/config).
            context: Kubernetes context to use (default: current context).
            in_cluster: Use the service account of the pod we run in.
        """
        self._kubeconfig = kubeconfig
        self._context = context
        self._in_cluster = in_cluster
        self._api_client: Any = None
        self._core_v1: Any = None
        self._version_api: Any = None
        self._dynamic: Any = None
        self._lock = threading.Lock()

    def _init_client(self) -> None:
        if self._api_client is not None:
            return

        with self._lock:
            if self._api_client is not None:
                return

            if self._in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config(config_file=self._kubeconfig, context=self._context)

            api_client = client.ApiClient()
            self._core_v1 = client.CoreV1Api(api_client)
            self._version_api = client.VersionApi(api_client)
            # Published last: other threads skip the lock once this is set.
            self._api_client = api_client

    def _dynamic_client(self) -> Any:
        with self._lock:
            if self._dynamic is None:
                self._dynamic = DynamicClient(self._api_client)
            return self._dynamic

    async def metadata(self) -> tuple[str, str]:
        return await asyncio.to_thread(self._metadata)

    async def all_nodes(self, full: bool) -> list[Node]:
        return await asyncio.to_thread(self._all_nodes, full)

    async def location(self) -> Location:
        return await asyncio.to_thread(self._location)

    async def all_images(self) -> list[Image]:
        return await asyncio.to_thread(self._all_images)

    async def all_resources(self, full: bool) -> list[ResourceList]:
        return await asyncio.to_thread(self._all_resources, full)

    def _metadata(self) -> tuple[str, str]:
        self._init_client()
        version = self._version_api.get_code()
        return version.git_version, self._ca_cert_digest()

    def _ca_cert_digest(self) -> str:
        ca_file = getattr(self._api_client.configuration, "ssl_ca_cert", None)
        if not ca_file:
            logger.warning("No CA certificate configured, caCertDigest left empty")
            return ""
        return hashlib.sha256(Path(ca_file).read_bytes()).hexdigest()

    def _all_nodes(self, full: bool) -> list[Node]:
        self._init_client()
        nodes = [self._node(item, full) for item in self._core_v1.list_node().items]
        logger.debug(f"Found {len(nodes)} node(s)")
        return nodes

    def _node(self, item: Any, full: bool) -> Node:
        labels = item.metadata.labels or {}
        info = item.status.node_info
        node = Node(
            name=item.metadata.name,
            type=_first_label(labels, INSTANCE_TYPE_LABELS),
            hostname=labels.get(HOSTNAME_LABEL, ""),
            machine_id=info.machine_id or "",
            architecture=info.architecture or "",
            container_runtime_version=info.container_runtime_version or "",
            boot_id=info.boot_id or "",
            kernel_version=info.kernel_version or "",
            kube_proxy_version=info.kube_proxy_version or "",
            kubelet_version=info.kubelet_version or "",
            operating_system=info.operating_system or "",
            os_image=info.os_image or "",
        )
        if full:
            node.capacity = _capacity(item.status.capacity)
            node.allocatable = _capacity(item.status.allocatable)
            node.labels = dict(labels)
            node.annotations = dict(item.metadata.annotations or {})
        return node

    def _location(self) -> Location:
        self._init_client()
        items = self._core_v1.list_node().items
        if not items:
            return Location(name=ON_PREM)

        first = items[0]
        labels = first.metadata.labels or {}
        provider_id = first.spec.provider_id if first.spec else None

        zones: list[str] = []
        for item in items:
            zone = _first_label(item.metadata.labels or {}, ZONE_LABELS)
            if zone and zone not in zones:
                zones.append(zone)

        return Location(
            name=provider_name(provider_id),
            region=_first_label(labels, REGION_LABELS),
            zones=sorted(zones),
        )

    def _all_images(self) -> list[Image]:
        self._init_client()
        images: list[Image] = []
        seen: set[tuple[str, str, str, str]] = set()

        for pod in self._core_v1.list_pod_for_all_namespaces().items:
            namespace = pod.metadata.namespace
            pod_urn = _urn("Pod", namespace, pod.metadata.name)
            controller_urn = ""
            for owner in pod.metadata.owner_references or []:
                if owner.controller:
                    controller_urn = _urn(owner.kind, namespace, owner.name)
                    break

            for status in pod.status.container_statuses or []:
                digest = image_digest(status.image_id)
                key = (status.image, digest, pod_urn, status.name)
                if key in seen:
                    continue
                seen.add(key)

                name, version = split_image(status.image)
                images.append(Image(
                    full_name=status.image,
                    name=name,
                    version=version,
                    digest=digest,
                    controller_urn=controller_urn,
                    pod_urn=pod_urn,
                    container_name=status.name,
                ))

        logger.debug(f"Found {len(images)} image(s)")
        return images

    def _all_resources(self, full: bool) -> list[ResourceList]:
        self._init_client()
        dynamic = self._dynamic_client()
        inventories: list[ResourceList] = []
        seen: set[tuple[str, str]] = set()

        for api_resource in dynamic.resources.search():
            verbs = getattr(api_resource, "verbs", None) or []
            if "list" not in verbs or "/" in (api_resource.name or ""):
                continue
            if not getattr(api_resource, "preferred", True):
                continue
            key = (api_resource.group_version, api_resource.kind)
            if key in seen:
                continue
            seen.add(key)

            items = dynamic.get(api_resource).items or []
            inventory = ResourceList(
                kind=api_resource.kind,
                api_version=api_resource.group_version,
                namespaced=bool(api_resource.namespaced),
                count=len(items),
            )
            if full:
                inventory.resources = [
                    Resource(
                        name=item.metadata.name,
                        namespace=item.metadata.namespace if api_resource.namespaced else None,
                    )
                    for item in items
                ]
            inventories.append(inventory)

        logger.debug(f"Found {len(inventories)} resource kind(s)")
        return inventories
