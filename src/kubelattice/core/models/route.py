"""Gateway API route models (HTTPRoute, GRPCRoute, TLSRoute)."""

from dataclasses import dataclass, field
from enum import Enum

from kubelattice.core.models.base import GATEWAY_API_GROUP, Condition, GroupKind, NamespacedName, ObjectMeta


class RouteKind(Enum):
    """Supported route kinds."""

    HTTP_ROUTE = "HTTPRoute"
    GRPC_ROUTE = "GRPCRoute"
    TLS_ROUTE = "TLSRoute"

    @property
    def route_type(self) -> str:
        """Short route type recorded in lattice tags."""
        return {
            RouteKind.HTTP_ROUTE: "http",
            RouteKind.GRPC_ROUTE: "grpc",
            RouteKind.TLS_ROUTE: "tls",
        }[self]

    @property
    def api_version(self) -> str:
        if self == RouteKind.TLS_ROUTE:
            return f"{GATEWAY_API_GROUP}/v1alpha2"
        return f"{GATEWAY_API_GROUP}/v1"


class PathMatchType(Enum):
    """HTTP path match types."""

    EXACT = "Exact"
    PATH_PREFIX = "PathPrefix"
    REGULAR_EXPRESSION = "RegularExpression"


@dataclass(frozen=True)
class ParentReference:
    """Reference from a route to a parent Gateway (and optionally one of its listeners)."""

    name: str
    namespace: str | None = None
    section_name: str | None = None
    port: int | None = None
    group: str = GATEWAY_API_GROUP
    kind: str = "Gateway"


@dataclass
class RouteParentStatus:
    """Per-parent status as previously recorded on the route."""

    parent_ref: ParentReference
    controller_name: str = ""
    conditions: list[Condition] = field(default_factory=list)

    def is_accepted(self) -> bool | None:
        """Return the Accepted condition, or None when it was never recorded."""
        for condition in self.conditions:
            if condition.type == "Accepted":
                return condition.is_true()
        return None


@dataclass
class BackendRef:
    """A route rule's pointer to a Service or ServiceImport."""

    name: str
    kind: str = "Service"
    group: str = ""
    namespace: str | None = None
    port: int | None = None
    weight: int | None = None

    @property
    def is_service_import(self) -> bool:
        return self.kind == "ServiceImport"

    def namespace_or(self, default: str) -> str:
        return self.namespace or default


@dataclass
class HeaderMatch:
    """Header match condition."""

    name: str
    value: str
    type: str | None = "Exact"


@dataclass
class HTTPPathMatch:
    """HTTP path match condition."""

    type: str | None = PathMatchType.PATH_PREFIX.value
    value: str = "/"


@dataclass
class RouteMatch:
    """Common fields of a rule match block."""

    headers: list[HeaderMatch] = field(default_factory=list)


@dataclass
class HTTPRouteMatch(RouteMatch):
    """HTTPRoute match block."""

    path: HTTPPathMatch | None = None
    method: str | None = None
    query_params: list[dict[str, str]] = field(default_factory=list)


@dataclass
class GRPCMethodMatch:
    """GRPCRoute method match."""

    type: str | None = "Exact"
    service: str | None = None
    method: str | None = None


@dataclass
class GRPCRouteMatch(RouteMatch):
    """GRPCRoute match block."""

    method: GRPCMethodMatch = field(default_factory=GRPCMethodMatch)


@dataclass
class RouteRule:
    """A route rule: match blocks and weighted backends."""

    matches: list[RouteMatch] = field(default_factory=list)
    backend_refs: list[BackendRef] = field(default_factory=list)


@dataclass
class Route:
    """
    Kind-polymorphic route.

    HTTPRoute, GRPCRoute and TLSRoute share one shape; kind-specific behavior
    is selected from `kind` and from the concrete match types in each rule.
    TLSRoute rules never carry matches.
    """

    kind: RouteKind
    metadata: ObjectMeta
    parent_refs: list[ParentReference] = field(default_factory=list)
    hostnames: list[str] = field(default_factory=list)
    rules: list[RouteRule] = field(default_factory=list)
    parents: list[RouteParentStatus] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations

    @property
    def route_type(self) -> str:
        return self.kind.route_type

    def namespaced_name(self) -> NamespacedName:
        return self.metadata.namespaced_name()

    def group_kind(self) -> GroupKind:
        return GroupKind(group=GATEWAY_API_GROUP, kind=self.kind.value)

    def is_deleted(self) -> bool:
        return self.metadata.is_deleted()

    def is_parent_ref_accepted(self, parent_ref: ParentReference) -> bool:
        """Check the Accepted condition previously recorded for a parent ref."""
        for parent in self.parents:
            if parent.parent_ref == parent_ref:
                return parent.is_accepted() is True
        return False

    def has_all_parent_refs_rejected(self) -> bool:
        """True when no parent status records an accepted condition."""
        return not any(parent.is_accepted() for parent in self.parents)
