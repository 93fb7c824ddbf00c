"""Data models for the Kubernetes Bill of Materials document."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def format_timestamp(value: datetime) -> str:
    """Format a datetime as RFC 3339, using ``Z`` for UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp produced by :func:`format_timestamp`."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _drop_none(data: dict) -> dict:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Tool:
    """Identity of the tool that produced a document."""

    vendor: str
    name: str
    build_time: str = ""
    version: str = ""
    commit: str = ""
    commit_time: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "vendor": self.vendor,
            "name": self.name,
            "buildTime": self.build_time,
            "version": self.version,
            "commit": self.commit,
            "commitTime": self.commit_time,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Tool":
        """Create from dictionary."""
        return cls(
            vendor=data.get("vendor", ""),
            name=data.get("name", ""),
            build_time=data.get("buildTime", ""),
            version=data.get("version", ""),
            commit=data.get("commit", ""),
            commit_time=data.get("commitTime", ""),
        )


@dataclass
class Location:
    """Where a cluster runs: cloud provider or on-prem, region and zones."""

    name: str = ""
    region: str = ""
    zones: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"name": self.name, "region": self.region, "zones": list(self.zones)}

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        return cls(
            name=data.get("name", ""),
            region=data.get("region", ""),
            zones=list(data.get("zones") or []),
        )


@dataclass
class Capacity:
    """Node resource quantities, kept as Kubernetes quantity strings."""

    cpu: str = ""
    memory: str = ""
    pods: str = ""
    ephemeral_storage: str = ""

    def to_dict(self) -> dict:
        return {
            "cpu": self.cpu,
            "memory": self.memory,
            "pods": self.pods,
            "ephemeralStorage": self.ephemeral_storage,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Capacity":
        return cls(
            cpu=data.get("cpu", ""),
            memory=data.get("memory", ""),
            pods=data.get("pods", ""),
            ephemeral_storage=data.get("ephemeralStorage", ""),
        )


@dataclass
class Node:
    """A cluster node.

    In short mode only identity and version fields are filled; capacity,
    allocatable, labels and annotations stay ``None`` and are left out of
    the encoded document.
    """

    name: str
    type: str = ""
    hostname: str = ""
    capacity: Optional[Capacity] = None
    allocatable: Optional[Capacity] = None
    labels: Optional[dict[str, str]] = None
    annotations: Optional[dict[str, str]] = None
    machine_id: str = ""
    architecture: str = ""
    container_runtime_version: str = ""
    boot_id: str = ""
    kernel_version: str = ""
    kube_proxy_version: str = ""
    kubelet_version: str = ""
    operating_system: str = ""
    os_image: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting absent detail fields."""
        return _drop_none({
            "name": self.name,
            "type": self.type,
            "hostname": self.hostname,
            "capacity": self.capacity.to_dict() if self.capacity else None,
            "allocatable": self.allocatable.to_dict() if self.allocatable else None,
            "labels": dict(self.labels) if self.labels is not None else None,
            "annotations": dict(self.annotations) if self.annotations is not None else None,
            "machineId": self.machine_id,
            "architecture": self.architecture,
            "containerRuntimeVersion": self.container_runtime_version,
            "bootId": self.boot_id,
            "kernelVersion": self.kernel_version,
            "kubeProxyVersion": self.kube_proxy_version,
            "kubeletVersion": self.kubelet_version,
            "operatingSystem": self.operating_system,
            "osImage": self.os_image,
        })

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        """Create from dictionary."""
        capacity = data.get("capacity")
        allocatable = data.get("allocatable")
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            hostname=data.get("hostname", ""),
            capacity=Capacity.from_dict(capacity) if capacity is not None else None,
            allocatable=Capacity.from_dict(allocatable) if allocatable is not None else None,
            labels=data.get("labels"),
            annotations=data.get("annotations"),
            machine_id=data.get("machineId", ""),
            architecture=data.get("architecture", ""),
            container_runtime_version=data.get("containerRuntimeVersion", ""),
            boot_id=data.get("bootId", ""),
            kernel_version=data.get("kernelVersion", ""),
            kube_proxy_version=data.get("kubeProxyVersion", ""),
            kubelet_version=data.get("kubeletVersion", ""),
            operating_system=data.get("operatingSystem", ""),
            os_image=data.get("osImage", ""),
        )


@dataclass
class Image:
    """A container image running in the cluster."""

    full_name: str
    name: str = ""
    version: str = ""
    digest: str = ""
    controller_urn: str = ""
    pod_urn: str = ""
    container_name: str = ""

    def to_dict(self) -> dict:
        return {
            "fullName": self.full_name,
            "name": self.name,
            "version": self.version,
            "digest": self.digest,
            "controllerUrn": self.controller_urn,
            "podUrn": self.pod_urn,
            "containerName": self.container_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Image":
        return cls(
            full_name=data["fullName"],
            name=data.get("name", ""),
            version=data.get("version", ""),
            digest=data.get("digest", ""),
            controller_urn=data.get("controllerUrn", ""),
            pod_urn=data.get("podUrn", ""),
            container_name=data.get("containerName", ""),
        )


@dataclass
class Resource:
    """A single API object, identified by name and namespace."""

    name: str
    namespace: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({"name": self.name, "namespace": self.namespace})

    @classmethod
    def from_dict(cls, data: dict) -> "Resource":
        return cls(name=data["name"], namespace=data.get("namespace"))


@dataclass
class ResourceList:
    """Inventory of one API kind.

    ``count`` is always the true number of objects. ``resources`` is only
    populated in full mode.
    """

    kind: str
    api_version: str
    namespaced: bool
    count: int
    resources: Optional[list[Resource]] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "kind": self.kind,
            "apiVersion": self.api_version,
            "namespaced": self.namespaced,
            "count": self.count,
            "resources": (
                [r.to_dict() for r in self.resources] if self.resources is not None else None
            ),
        })

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceList":
        items = data.get("resources")
        return cls(
            kind=data["kind"],
            api_version=data["apiVersion"],
            namespaced=data.get("namespaced", False),
            count=data.get("count", 0),
            resources=[Resource.from_dict(r) for r in items] if items is not None else None,
        )


@dataclass
class Resources:
    """Images and API resources found in the cluster."""

    images: list[Image] = field(default_factory=list)
    resources: list[ResourceList] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "images": [i.to_dict() for i in self.images],
            "resources": [r.to_dict() for r in self.resources],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Resources":
        return cls(
            images=[Image.from_dict(i) for i in data.get("images") or []],
            resources=[ResourceList.from_dict(r) for r in data.get("resources") or []],
        )


@dataclass
class Cluster:
    """Snapshot of one cluster at one point in time."""

    location: Location
    k8s_version: str
    ca_cert_digest: str
    nodes: list[Node] = field(default_factory=list)
    resources: Resources = field(default_factory=Resources)
    # Not collected yet; always empty.
    cni_version: str = ""

    @property
    def nodes_count(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "location": self.location.to_dict(),
            "cniVersion": self.cni_version,
            "k8sVersion": self.k8s_version,
            "caCertDigest": self.ca_cert_digest,
            "nodesCount": self.nodes_count,
            "nodes": [n.to_dict() for n in self.nodes],
            "resources": self.resources.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cluster":
        """Create from dictionary.

        ``nodesCount`` is not read back: it is always the length of ``nodes``.
        """
        return cls(
            location=Location.from_dict(data.get("location") or {}),
            k8s_version=data.get("k8sVersion", ""),
            ca_cert_digest=data.get("caCertDigest", ""),
            nodes=[Node.from_dict(n) for n in data.get("nodes") or []],
            resources=Resources.from_dict(data.get("resources") or {}),
            cni_version=data.get("cniVersion", ""),
        )


@dataclass
class KBOM:
    """A Kubernetes Bill of Materials document."""

    id: str
    bom_format: str
    spec_version: str
    generated_at: datetime
    generated_by: Tool
    cluster: Cluster

    def to_dict(self) -> dict:
        """Convert to dictionary in document field order."""
        return {
            "id": self.id,
            "bomFormat": self.bom_format,
            "specVersion": self.spec_version,
            "generatedAt": format_timestamp(self.generated_at),
            "generatedBy": self.generated_by.to_dict(),
            "cluster": self.cluster.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "KBOM":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            bom_format=data["bomFormat"],
            spec_version=data["specVersion"],
            generated_at=parse_timestamp(data["generatedAt"]),
            generated_by=Tool.from_dict(data.get("generatedBy") or {}),
            cluster=Cluster.from_dict(data["cluster"]),
        )
