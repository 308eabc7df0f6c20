"""Listener builder: one listener per compatible, accepted gateway listener section."""

import logging

from kubelattice.core.models import (
    Gateway,
    GatewayListener,
    ListenerProtocol,
    NotFoundError,
    ParentReference,
    Route,
    ValidationError,
)
from kubelattice.core.models.errors import LATTICE_TLS_PASSTHROUGH_SINGLE_RULE
from kubelattice.k8s import gateways
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders.rule import RuleBuilder
from kubelattice.lattice.model import DefaultAction, Listener, ListenerSpec, Service, Stack, id_from_hash
from kubelattice.lattice.model.listener import (
    DEFAULT_FIXED_RESPONSE_STATUS_CODE,
    PROTOCOL_HTTP,
    PROTOCOL_HTTPS,
    PROTOCOL_TLS_PASSTHROUGH,
)
from kubelattice.utils.config import ControllerConfig

logger = logging.getLogger(__name__)


def lattice_listener_protocol(section: GatewayListener) -> str | None:
    """Lattice protocol for a gateway listener section, None when lattice cannot serve it."""
    if section.protocol == ListenerProtocol.HTTP.value:
        return PROTOCOL_HTTP
    if section.protocol == ListenerProtocol.HTTPS.value:
        return PROTOCOL_HTTPS
    if section.is_tls_passthrough():
        return PROTOCOL_TLS_PASSTHROUGH
    return None


class ListenerBuilder:
    """Builds listeners, and through the rule builder their rules, for a route."""

    def __init__(self, reader: ClusterReader, config: ControllerConfig, rule_builder: RuleBuilder):
        self.reader = reader
        self.config = config
        self.rule_builder = rule_builder

    async def build(self, stack: Stack, route: Route, service: Service) -> list[Listener]:
        if not route.parent_refs:
            logger.debug("Route %s has no parentRefs, skipping listeners", route.namespaced_name())
            return []
        if route.is_deleted():
            logger.debug("Route %s is deleted, skipping listeners", route.namespaced_name())
            return []

        controlled = await gateways.find_controlled_parents_lenient(self.reader, route, self.config.controller_name)
        if not controlled:
            raise NotFoundError("Gateway", route.namespace, f"controlled parent of {route.name}")
        # Listener configuration must be identical across all gateways of a service.
        gateway = controlled[0]

        listeners = []
        for parent_ref in route.parent_refs:
            if not gateways.parent_ref_matches_gateway(route, parent_ref, gateway):
                continue
            if not route.is_parent_ref_accepted(parent_ref):
                logger.debug("Skipping parentRef %s of route %s, not accepted", parent_ref.name, route.namespaced_name())
                continue
            for section in gateway.listeners:
                listener = await self._build_section(stack, route, service, gateway, parent_ref, section)
                if listener is not None:
                    listeners.append(listener)
        return listeners

    async def _build_section(
        self,
        stack: Stack,
        route: Route,
        service: Service,
        gateway: Gateway,
        parent_ref: ParentReference,
        section: GatewayListener,
    ) -> Listener | None:
        if not gateways.listener_matches_parent_ref(section, parent_ref):
            return None
        if not await gateways.is_route_allowed(self.reader, route, gateway, section):
            logger.debug("Listener %s of gateway %s does not allow route %s", section.name, gateway.name, route.name)
            return None
        protocol = lattice_listener_protocol(section)
        if protocol is None:
            logger.debug("Listener %s protocol %s is not supported by lattice", section.name, section.protocol)
            return None

        if protocol == PROTOCOL_TLS_PASSTHROUGH:
            if len(route.rules) != 1:
                raise ValidationError(
                    LATTICE_TLS_PASSTHROUGH_SINGLE_RULE,
                    f"TLS passthrough listener {section.name} supports exactly one rule, route has {len(route.rules)}",
                    field="rules",
                )
            forward = await self.rule_builder.build_forward_action(stack, route, route.rules[0])
            default_action = DefaultAction(forward=forward)
        else:
            default_action = DefaultAction(fixed_response_status_code=DEFAULT_FIXED_RESPONSE_STATUS_CODE)

        spec = ListenerSpec(
            stack_service_id=service.id,
            k8s_route_name=route.name,
            k8s_route_namespace=route.namespace,
            port=section.port,
            protocol=protocol,
            default_action=default_action,
        )
        if stack.get_resource(Listener, id_from_hash(spec)) is not None:
            # another parentRef already selected this section
            return None

        listener = Listener.new(stack, spec)
        stack.add_dependency(service, listener)
        logger.debug("Added listener %s port %d protocol %s", listener.id, section.port, protocol)

        if default_action.forward is not None:
            self.rule_builder.depend_on_target_groups(stack, default_action.forward, listener)
        else:
            await self.rule_builder.build(stack, route, listener)
        return listener
