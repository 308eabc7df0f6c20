"""
Lattice service builder.

Entry point of the route model build: it produces the service resource, then
drives the target group, listener and rule builders, collecting everything in
one stack. Builders run even for a route that is being deleted, so synthesis
always diffs against a complete graph; deleted resources carry is_deleted.
"""

import logging

from kubelattice.core.models import (
    Gateway,
    InvalidBackendRefError,
    InvalidServiceNameOverrideError,
    NotFoundError,
    Route,
    RouteKind,
    TLSMode,
    ValidationError,
)
from kubelattice.core.models.errors import LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME
from kubelattice.k8s import annotations, gateways
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders.listener import ListenerBuilder
from kubelattice.lattice.builders.rule import RuleBuilder
from kubelattice.lattice.builders.targetgroup import TargetGroupBuilder
from kubelattice.lattice.model import Service, ServiceSpec, Stack
from kubelattice.lattice.model.naming import lattice_service_name, validate_service_name_override
from kubelattice.lattice.policy import PolicyResolver
from kubelattice.utils.config import ControllerConfig

logger = logging.getLogger(__name__)


async def resolve_standalone(reader: ClusterReader, route: Route, controller_name: str) -> bool:
    """
    Whether the route's service stays out of every service network.

    The route annotation wins when present; otherwise any controlled parent
    gateway annotated true makes it standalone. A failed gateway lookup is an
    error, except while the route is being deleted.
    """
    route_value = annotations.standalone_value(route.annotations)
    if route_value is not None:
        return route_value

    try:
        parents = await gateways.find_controlled_parents(reader, route, controller_name)
    except NotFoundError:
        if route.is_deleted():
            logger.debug("Gateway lookup failed during deletion of %s, not standalone", route.namespaced_name())
            return False
        raise

    return any(annotations.standalone_value(gateway.annotations) for gateway in parents)


def service_name_override(route: Route, parents: list[Gateway]) -> str:
    """Route service-name-override first, then the first controlled gateway's lattice-service-name."""
    override = route.annotations.get(annotations.SERVICE_NAME_OVERRIDE, "").strip()
    if not override:
        for gateway in parents:
            override = gateway.annotations.get(annotations.LATTICE_SERVICE_NAME, "").strip()
            if override:
                break
    if override:
        problem = validate_service_name_override(override)
        if problem is not None:
            raise InvalidServiceNameOverrideError(override, problem)
    return override


async def resolve_service_name(reader: ClusterReader, route: Route, controller_name: str) -> str:
    """Lattice service name of a route, honoring name overrides."""
    parents = await gateways.find_controlled_parents_lenient(reader, route, controller_name)
    return service_name_override(route, parents) or lattice_service_name(route.name, route.namespace)


def certificate_arn(route: Route, parents: list[Gateway]) -> str:
    """ARN from the first parent-matched listener section that terminates TLS."""
    for parent_ref in route.parent_refs:
        for gateway in parents:
            if not gateways.parent_ref_matches_gateway(route, parent_ref, gateway):
                continue
            for section in gateway.listeners:
                if not gateways.listener_matches_parent_ref(section, parent_ref):
                    continue
                if section.tls_mode == TLSMode.TERMINATE.value and annotations.CERTIFICATE_ARN in section.tls_options:
                    return section.tls_options[annotations.CERTIFICATE_ARN]
    return ""


class LatticeServiceBuilder:
    """Builds the complete lattice stack for one route."""

    def __init__(self, reader: ClusterReader, config: ControllerConfig):
        self.reader = reader
        self.config = config
        self.policy_resolver = PolicyResolver(reader)
        self.target_group_builder = TargetGroupBuilder(reader, config, self.policy_resolver)
        self.rule_builder = RuleBuilder(self.target_group_builder)
        self.listener_builder = ListenerBuilder(reader, config, self.rule_builder)

    async def build(self, route: Route) -> tuple[Stack, Service]:
        stack = Stack(route.namespaced_name())
        service = await self.build_service(stack, route)
        await self.build_target_groups(stack, route)
        await self.listener_builder.build(stack, route, service)
        logger.debug("Built %d resources for route %s", len(stack), route.namespaced_name())
        return stack, service

    async def build_service(self, stack: Stack, route: Route) -> Service:
        if route.kind == RouteKind.TLS_ROUTE and not route.hostnames:
            raise ValidationError(
                LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME,
                f"TLSRoute {route.namespaced_name()} must have at least one hostname",
                field="spec.hostnames",
            )

        controller_name = self.config.controller_name
        standalone = await resolve_standalone(self.reader, route, controller_name)
        if route.is_deleted():
            parents = await gateways.find_controlled_parents_lenient(self.reader, route, controller_name)
        else:
            parents = await gateways.find_controlled_parents(self.reader, route, controller_name)

        spec = ServiceSpec(
            route_name=route.name,
            route_namespace=route.namespace,
            route_type=route.route_type,
            service_network_names=[] if standalone else self._service_networks(route, parents),
            customer_domain_name=route.hostnames[0] if route.hostnames else "",
            customer_cert_arn=certificate_arn(route, parents),
            service_name_override=service_name_override(route, parents),
            additional_tags=annotations.additional_tags(route.annotations),
        )

        takeover = route.annotations.get(annotations.ALLOW_TAKEOVER_FROM, "").strip()
        if takeover:
            spec.allow_takeover_from = str(annotations.parse_takeover_from(takeover))

        if standalone:
            logger.debug("Route %s is standalone, no service network association", route.namespaced_name())
        return Service.new(stack, spec, is_deleted=route.is_deleted())

    def _service_networks(self, route: Route, parents: list[Gateway]) -> list[str]:
        override = self.config.service_network_override()
        if override:
            return [override]
        names: list[str] = []
        for parent_ref in route.parent_refs:
            if not route.is_parent_ref_accepted(parent_ref) and not route.is_deleted():
                continue
            for gateway in parents:
                if gateways.parent_ref_matches_gateway(route, parent_ref, gateway) and gateway.name not in names:
                    names.append(gateway.name)
        return names

    async def build_target_groups(self, stack: Stack, route: Route) -> None:
        """Target groups for every backend ref, including those of a route being deleted."""
        for route_rule in route.rules:
            for backend_ref in route_rule.backend_refs:
                try:
                    await self.target_group_builder.build_for_backend_ref(stack, route, backend_ref)
                except InvalidBackendRefError as e:
                    logger.info("Skipping target group for route %s: %s", route.namespaced_name(), e)
