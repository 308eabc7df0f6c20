"""Core interfaces for kubelattice."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from kubelattice.lattice.model.stack import Stack


class ClusterClient(ABC):
    """Interface for read-only Kubernetes cluster access."""

    @abstractmethod
    async def get_resource(
        self, api_version: str, kind: str, name: str, namespace: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Get a single resource as a manifest dict, or None if it does not exist."""
        pass

    @abstractmethod
    async def get_resources(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List resources of a kind.

        Returns an empty list when the kind is not served by the cluster, so a
        missing CRD reads the same as "nothing attached".
        """
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if client is connected to cluster."""
        pass


class ResourceSynthesizer(ABC):
    """Reconciles one resource kind of a stack against the lattice API."""

    @abstractmethod
    async def synthesize(self, stack: Stack) -> None:
        """Create or update what the stack wants, and delete what it marks deleted."""
        pass

    @abstractmethod
    async def post_synthesize(self, stack: Stack) -> None:
        """
        Clean up after every synthesizer has run.

        Called in reverse order so dependers release dependees before the
        dependees are removed.
        """
        pass


class StackDeployer(ABC):
    """Deploys a built stack."""

    @abstractmethod
    async def deploy(self, stack: Stack) -> None:
        pass

    @abstractmethod
    def synthesizers(self) -> Sequence[ResourceSynthesizer]:
        """Synthesizers in dependency order."""
        pass
