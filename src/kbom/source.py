"""Interface to the component that supplies cluster facts."""

from abc import ABC, abstractmethod

from kbom.models import Image, Location, Node, ResourceList


class FactSource(ABC):
    """Abstract source of cluster facts.

    Every method may be awaited concurrently with the others. Failures are
    raised as-is; callers decide how to report them.
    """

    @abstractmethod
    async def metadata(self) -> tuple[str, str]:
        """Return the control-plane version and the CA certificate digest."""
        pass

    @abstractmethod
    async def all_nodes(self, full: bool) -> list[Node]:
        """Return every node, with reduced detail when ``full`` is False."""
        pass

    @abstractmethod
    async def location(self) -> Location:
        """Return the provider, region and zones the cluster runs in."""
        pass

    @abstractmethod
    async def all_images(self) -> list[Image]:
        """Return the images of all running containers."""
        pass

    @abstractmethod
    async def all_resources(self, full: bool) -> list[ResourceList]:
        """Return per-kind resource inventories, with item names when ``full``."""
        pass
