"""Kubernetes-side models consumed by the lattice builders."""

from kubelattice.core.models.base import (
    APPLICATION_NETWORKING_GROUP,
    CORE_GROUP,
    GATEWAY_API_GROUP,
    MCS_GROUP,
    Condition,
    GroupKind,
    NamespacedName,
    ObjectMeta,
)
from kubelattice.core.models.errors import (
    InvalidBackendRefError,
    InvalidServiceNameOverrideError,
    KubeLatticeError,
    NotFoundError,
    RequeueNeededAfter,
    RetryError,
    ValidationError,
)
from kubelattice.core.models.gateway import (
    AllowedRoutes,
    Gateway,
    GatewayClass,
    GatewayListener,
    ListenerProtocol,
    NamespacesFrom,
    TLSMode,
)
from kubelattice.core.models.policy import (
    AccessLogPolicy,
    HealthCheckConfig,
    IAMAuthPolicy,
    Policy,
    PolicyKind,
    TargetGroupPolicy,
    TargetRef,
    VpcAssociationPolicy,
)
from kubelattice.core.models.route import (
    BackendRef,
    GRPCMethodMatch,
    GRPCRouteMatch,
    HeaderMatch,
    HTTPPathMatch,
    HTTPRouteMatch,
    ParentReference,
    PathMatchType,
    Route,
    RouteKind,
    RouteMatch,
    RouteParentStatus,
    RouteRule,
)
from kubelattice.core.models.service import (
    Endpoint,
    EndpointPort,
    EndpointSlice,
    Service,
    ServiceExport,
    ServiceImport,
    ServicePort,
)

__all__ = [
    "APPLICATION_NETWORKING_GROUP",
    "CORE_GROUP",
    "GATEWAY_API_GROUP",
    "MCS_GROUP",
    "AccessLogPolicy",
    "AllowedRoutes",
    "BackendRef",
    "Condition",
    "Endpoint",
    "EndpointPort",
    "EndpointSlice",
    "GRPCMethodMatch",
    "GRPCRouteMatch",
    "Gateway",
    "GatewayClass",
    "GatewayListener",
    "GroupKind",
    "HTTPPathMatch",
    "HTTPRouteMatch",
    "HeaderMatch",
    "HealthCheckConfig",
    "IAMAuthPolicy",
    "InvalidBackendRefError",
    "InvalidServiceNameOverrideError",
    "KubeLatticeError",
    "ListenerProtocol",
    "NamespacedName",
    "NamespacesFrom",
    "NotFoundError",
    "ObjectMeta",
    "ParentReference",
    "PathMatchType",
    "Policy",
    "PolicyKind",
    "RequeueNeededAfter",
    "RetryError",
    "Route",
    "RouteKind",
    "RouteMatch",
    "RouteParentStatus",
    "RouteRule",
    "Service",
    "ServiceExport",
    "ServiceImport",
    "ServicePort",
    "TLSMode",
    "TargetGroupPolicy",
    "TargetRef",
    "ValidationError",
    "VpcAssociationPolicy",
]
