"""Parent gateway resolution and listener compatibility checks."""

import logging

from kubelattice.core.models import (
    Gateway,
    GatewayListener,
    ListenerProtocol,
    NamespacesFrom,
    NotFoundError,
    ParentReference,
    Route,
    RouteKind,
)
from kubelattice.k8s.reader import ClusterReader

logger = logging.getLogger(__name__)

# Route kinds a listener accepts when allowedRoutes.kinds is empty
DEFAULT_ALLOWED_KINDS: dict[str, frozenset[str]] = {
    ListenerProtocol.HTTP.value: frozenset({RouteKind.HTTP_ROUTE.value}),
    ListenerProtocol.HTTPS.value: frozenset({RouteKind.HTTP_ROUTE.value, RouteKind.GRPC_ROUTE.value}),
    ListenerProtocol.TLS.value: frozenset({RouteKind.TLS_ROUTE.value}),
}


def parent_namespace(route: Route, parent_ref: ParentReference) -> str:
    return parent_ref.namespace or route.namespace


async def is_controlled(reader: ClusterReader, gateway: Gateway, controller_name: str) -> bool:
    """True when the gateway's class names this controller."""
    if not gateway.gateway_class_name:
        return False
    gateway_class = await reader.get_gateway_class(gateway.gateway_class_name)
    return gateway_class is not None and gateway_class.controller_name == controller_name


async def find_controlled_parents(reader: ClusterReader, route: Route, controller_name: str) -> list[Gateway]:
    """
    Parent gateways of a route that this controller owns, in parentRefs order.

    Every controlled gateway that could be found is looked at; if any parent
    could not be found, NotFoundError is raised after the walk.
    """
    result: list[Gateway] = []
    seen: set[tuple[str, str]] = set()
    misses: list[str] = []
    for parent_ref in route.parent_refs:
        namespace = parent_namespace(route, parent_ref)
        if (namespace, parent_ref.name) in seen:
            continue
        seen.add((namespace, parent_ref.name))
        gateway = await reader.get_gateway(parent_ref.name, namespace)
        if gateway is None:
            misses.append(f"{namespace}/{parent_ref.name}")
            continue
        if await is_controlled(reader, gateway, controller_name):
            result.append(gateway)
        else:
            logger.debug("Gateway %s/%s is not controlled by %s", namespace, parent_ref.name, controller_name)
    if misses:
        raise NotFoundError("Gateway", None, ", ".join(misses))
    return result


async def find_controlled_parents_lenient(reader: ClusterReader, route: Route, controller_name: str) -> list[Gateway]:
    """Like find_controlled_parents, but skips parents that cannot be found."""
    result: list[Gateway] = []
    for parent_ref in route.parent_refs:
        gateway = await reader.get_gateway(parent_ref.name, parent_namespace(route, parent_ref))
        if gateway is None:
            continue
        if gateway not in result and await is_controlled(reader, gateway, controller_name):
            result.append(gateway)
    return result


def parent_ref_matches_gateway(route: Route, parent_ref: ParentReference, gateway: Gateway) -> bool:
    return parent_ref.name == gateway.name and parent_namespace(route, parent_ref) == gateway.namespace


def listener_matches_parent_ref(listener: GatewayListener, parent_ref: ParentReference) -> bool:
    """A parent ref without section name or port selects every listener."""
    if parent_ref.section_name is not None and parent_ref.section_name != listener.name:
        return False
    if parent_ref.port is not None and parent_ref.port != listener.port:
        return False
    return True


def is_route_kind_allowed(route: Route, listener: GatewayListener) -> bool:
    allowed = listener.allowed_routes
    if allowed is not None and allowed.kinds:
        return route.kind.value in allowed.kinds
    return route.kind.value in DEFAULT_ALLOWED_KINDS.get(listener.protocol, frozenset())


async def is_route_allowed(reader: ClusterReader, route: Route, gateway: Gateway, listener: GatewayListener) -> bool:
    """Check the listener's allowedRoutes kinds and namespaces policy."""
    if not is_route_kind_allowed(route, listener):
        return False

    allowed = listener.allowed_routes
    namespaces_from = allowed.namespaces_from if allowed is not None else None
    if namespaces_from == NamespacesFrom.ALL.value:
        return True
    if namespaces_from == NamespacesFrom.SELECTOR.value:
        labels = await reader.get_namespace_labels(route.namespace)
        if labels is None:
            raise NotFoundError("Namespace", None, route.namespace)
        selector = allowed.namespace_selector if allowed is not None else {}
        return all(labels.get(key) == value for key, value in selector.items())
    # Same, or unknown
    return route.namespace == gateway.namespace
