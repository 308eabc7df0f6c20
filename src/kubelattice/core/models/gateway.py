"""Gateway API gateway models."""

from dataclasses import dataclass, field
from enum import Enum

from kubelattice.core.models.base import NamespacedName, ObjectMeta


class ListenerProtocol(Enum):
    """Gateway listener protocols."""

    HTTP = "HTTP"
    HTTPS = "HTTPS"
    TLS = "TLS"
    TCP = "TCP"
    UDP = "UDP"


class TLSMode(Enum):
    """Gateway listener TLS modes."""

    TERMINATE = "Terminate"
    PASSTHROUGH = "Passthrough"


class NamespacesFrom(Enum):
    """Namespaces from which a listener accepts routes."""

    SAME = "Same"
    ALL = "All"
    SELECTOR = "Selector"


@dataclass
class AllowedRoutes:
    """Listener allowedRoutes policy."""

    namespaces_from: str | None = None
    namespace_selector: dict[str, str] = field(default_factory=dict)  # matchLabels
    kinds: list[str] = field(default_factory=list)


@dataclass
class GatewayListener:
    """One listener section of a Gateway."""

    name: str
    port: int
    protocol: str
    hostname: str | None = None
    tls_mode: str | None = None
    tls_options: dict[str, str] = field(default_factory=dict)
    allowed_routes: AllowedRoutes | None = None

    def is_tls_passthrough(self) -> bool:
        return self.protocol == ListenerProtocol.TLS.value and self.tls_mode == TLSMode.PASSTHROUGH.value

    def is_tls_terminate(self) -> bool:
        return self.tls_mode == TLSMode.TERMINATE.value


@dataclass
class Gateway:
    """Gateway: maps to a lattice service network."""

    metadata: ObjectMeta
    gateway_class_name: str = ""
    listeners: list[GatewayListener] = field(default_factory=list)

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
class GatewayClass:
    """Cluster-scoped GatewayClass."""

    name: str
    controller_name: str
