"""Kubernetes Service, EndpointSlice and multi-cluster service models."""

from dataclasses import dataclass, field

from kubelattice.core.models.base import NamespacedName, ObjectMeta


@dataclass
class ServicePort:
    """One port of a Service. Name is empty only for single-port services."""

    port: int
    name: str = ""
    target_port: int | str | None = None
    protocol: str = "TCP"


@dataclass
class Service:
    """Kubernetes Service."""

    metadata: ObjectMeta
    ports: list[ServicePort] = field(default_factory=list)
    ip_families: list[str] = field(default_factory=list)
    selector: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    def namespaced_name(self) -> NamespacedName:
        return self.metadata.namespaced_name()

    def find_port(self, port: int) -> ServicePort | None:
        for service_port in self.ports:
            if service_port.port == port:
                return service_port
        return None


@dataclass
class EndpointPort:
    """Port exposed by an EndpointSlice."""

    port: int
    name: str = ""
    protocol: str = "TCP"


@dataclass
class Endpoint:
    """One endpoint of an EndpointSlice."""

    addresses: list[str] = field(default_factory=list)
    ready: bool | None = None
    serving: bool | None = None
    terminating: bool | None = None
    target_ref: NamespacedName | None = None  # backing pod, when known


@dataclass
class EndpointSlice:
    """discovery.k8s.io/v1 EndpointSlice."""

    metadata: ObjectMeta
    address_type: str = "IPv4"
    ports: list[EndpointPort] = field(default_factory=list)
    endpoints: list[Endpoint] = field(default_factory=list)


@dataclass
class ServiceExport:
    """multicluster.x-k8s.io ServiceExport."""

    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations

    def namespaced_name(self) -> NamespacedName:
        return self.metadata.namespaced_name()

    def is_deleted(self) -> bool:
        return self.metadata.is_deleted()


@dataclass
class ServiceImport:
    """multicluster.x-k8s.io ServiceImport. Cluster and VPC identity come from annotations."""

    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations
