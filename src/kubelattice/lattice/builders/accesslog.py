"""Access log subscription builder for AccessLogPolicy objects."""

import logging

from kubelattice.core.models import AccessLogPolicy, RouteKind, ValidationError
from kubelattice.core.models.errors import LATTICE_MISSING_DESTINATION_ARN, LATTICE_UNSUPPORTED_TARGET_REF
from kubelattice.k8s import annotations
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders.service import resolve_service_name
from kubelattice.lattice.model import (
    ACCESS_LOG_SUBSCRIPTION_ANNOTATION,
    AccessLogSubscription,
    AccessLogSubscriptionSpec,
    EventType,
    SourceType,
    Stack,
)
from kubelattice.lattice.model.naming import lattice_service_name
from kubelattice.utils.config import ControllerConfig

logger = logging.getLogger(__name__)

ROUTE_KINDS = {RouteKind.HTTP_ROUTE.value: RouteKind.HTTP_ROUTE, RouteKind.GRPC_ROUTE.value: RouteKind.GRPC_ROUTE}


def event_type(policy: AccessLogPolicy) -> EventType:
    if policy.is_deleted():
        return EventType.DELETE
    if ACCESS_LOG_SUBSCRIPTION_ANNOTATION in policy.annotations:
        return EventType.UPDATE
    return EventType.CREATE


class AccessLogSubscriptionBuilder:
    def __init__(self, reader: ClusterReader, config: ControllerConfig):
        self.reader = reader
        self.config = config

    async def source_name(self, policy: AccessLogPolicy) -> str:
        """Service network name for Gateway targets, lattice service name for route targets."""
        target_ref = policy.target_ref
        if target_ref is None:
            raise ValidationError(LATTICE_UNSUPPORTED_TARGET_REF, "access log policy has no targetRef")
        if target_ref.kind == "Gateway":
            return target_ref.name
        route_kind = ROUTE_KINDS.get(target_ref.kind)
        if route_kind is None:
            raise ValidationError(LATTICE_UNSUPPORTED_TARGET_REF, f"unsupported targetRef kind {target_ref.kind}")
        namespace = policy.target_namespace()
        route = await self.reader.get_route(route_kind, target_ref.name, namespace)
        if route is None:
            return lattice_service_name(target_ref.name, namespace)
        return await resolve_service_name(self.reader, route, self.config.controller_name)

    async def build(self, policy: AccessLogPolicy) -> tuple[Stack, AccessLogSubscription]:
        stack = Stack(policy.namespaced_name())
        events = event_type(policy)

        destination_arn = policy.destination_arn
        if not destination_arn:
            if events != EventType.DELETE:
                raise ValidationError(
                    LATTICE_MISSING_DESTINATION_ARN, "access log policy's destinationArn cannot be empty",
                    field="spec.destinationArn",
                )
            destination_arn = ""

        source_type = SourceType.SERVICE
        if policy.target_ref is not None and policy.target_ref.kind == "Gateway":
            source_type = SourceType.SERVICE_NETWORK

        arn = None
        if events != EventType.CREATE:
            arn = policy.annotations.get(ACCESS_LOG_SUBSCRIPTION_ANNOTATION)
            if arn is None:
                logger.debug("Access log policy %s has no subscription annotation during %s", policy.name, events.value)

        spec = AccessLogSubscriptionSpec(
            source_type=source_type,
            source_name=await self.source_name(policy),
            destination_arn=destination_arn,
            policy_name=policy.namespaced_name(),
            event_type=events,
            additional_tags=annotations.additional_tags(policy.annotations),
        )
        subscription = AccessLogSubscription.new(stack, spec, arn=arn)
        return stack, subscription
