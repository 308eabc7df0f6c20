"""Convert Kubernetes manifests into kubelattice models."""

from datetime import datetime
from typing import Any

from kubelattice.core.models import (
    AccessLogPolicy,
    AllowedRoutes,
    BackendRef,
    Condition,
    Endpoint,
    EndpointPort,
    EndpointSlice,
    Gateway,
    GatewayClass,
    GatewayListener,
    GRPCMethodMatch,
    GRPCRouteMatch,
    HeaderMatch,
    HealthCheckConfig,
    HTTPPathMatch,
    HTTPRouteMatch,
    IAMAuthPolicy,
    NamespacedName,
    ObjectMeta,
    ParentReference,
    PathMatchType,
    Policy,
    PolicyKind,
    Route,
    RouteKind,
    RouteMatch,
    RouteParentStatus,
    RouteRule,
    Service,
    ServiceExport,
    ServiceImport,
    ServicePort,
    TargetGroupPolicy,
    TargetRef,
    TLSMode,
    VpcAssociationPolicy,
)
from kubelattice.core.models.base import GATEWAY_API_GROUP


class ManifestConverter:
    """Convert raw Kubernetes objects (camelCase manifest dicts) to typed models."""

    def convert_route(self, k8s_object: dict[str, Any]) -> Route:
        """Convert an HTTPRoute, GRPCRoute or TLSRoute."""
        kind = RouteKind(k8s_object.get("kind", RouteKind.HTTP_ROUTE.value))
        spec = k8s_object.get("spec") or {}
        status = k8s_object.get("status") or {}

        rules = []
        for rule in spec.get("rules") or []:
            if kind == RouteKind.TLS_ROUTE:
                # TLSRoute rules have no matches
                matches: list[RouteMatch] = []
            elif kind == RouteKind.GRPC_ROUTE:
                matches = [self._parse_grpc_match(m) for m in rule.get("matches") or []]
            else:
                matches = [self._parse_http_match(m) for m in rule.get("matches") or []]
            rules.append(
                RouteRule(
                    matches=matches,
                    backend_refs=[self._parse_backend_ref(ref) for ref in rule.get("backendRefs") or []],
                )
            )

        parents = []
        for parent in status.get("parents") or []:
            parents.append(
                RouteParentStatus(
                    parent_ref=self._parse_parent_ref(parent.get("parentRef") or {}),
                    controller_name=parent.get("controllerName", ""),
                    conditions=[self._parse_condition(c) for c in parent.get("conditions") or []],
                )
            )

        return Route(
            kind=kind,
            metadata=self.convert_metadata(k8s_object),
            parent_refs=[self._parse_parent_ref(ref) for ref in spec.get("parentRefs") or []],
            hostnames=list(spec.get("hostnames") or []),
            rules=rules,
            parents=parents,
        )

    def convert_gateway(self, k8s_object: dict[str, Any]) -> Gateway:
        spec = k8s_object.get("spec") or {}
        return Gateway(
            metadata=self.convert_metadata(k8s_object),
            gateway_class_name=spec.get("gatewayClassName", ""),
            listeners=[self._parse_gateway_listener(listener) for listener in spec.get("listeners") or []],
        )

    def convert_gateway_class(self, k8s_object: dict[str, Any]) -> GatewayClass:
        spec = k8s_object.get("spec") or {}
        return GatewayClass(
            name=(k8s_object.get("metadata") or {}).get("name", ""),
            controller_name=spec.get("controllerName", ""),
        )

    def convert_service(self, k8s_object: dict[str, Any]) -> Service:
        spec = k8s_object.get("spec") or {}
        ports = [
            ServicePort(
                port=int(port["port"]),
                name=port.get("name") or "",
                target_port=port.get("targetPort"),
                protocol=port.get("protocol") or "TCP",
            )
            for port in spec.get("ports") or []
        ]
        return Service(
            metadata=self.convert_metadata(k8s_object),
            ports=ports,
            ip_families=list(spec.get("ipFamilies") or []),
            selector=dict(spec.get("selector") or {}),
        )

    def convert_endpoint_slice(self, k8s_object: dict[str, Any]) -> EndpointSlice:
        endpoints = []
        for endpoint in k8s_object.get("endpoints") or []:
            conditions = endpoint.get("conditions") or {}
            target_ref = endpoint.get("targetRef")
            endpoints.append(
                Endpoint(
                    addresses=list(endpoint.get("addresses") or []),
                    ready=conditions.get("ready"),
                    serving=conditions.get("serving"),
                    terminating=conditions.get("terminating"),
                    target_ref=(
                        NamespacedName(namespace=target_ref.get("namespace", ""), name=target_ref.get("name", ""))
                        if target_ref
                        else None
                    ),
                )
            )
        return EndpointSlice(
            metadata=self.convert_metadata(k8s_object),
            address_type=k8s_object.get("addressType", "IPv4"),
            ports=[
                EndpointPort(
                    port=int(port["port"]),
                    name=port.get("name") or "",
                    protocol=port.get("protocol") or "TCP",
                )
                for port in k8s_object.get("ports") or []
                if port.get("port") is not None
            ],
            endpoints=endpoints,
        )

    def convert_service_export(self, k8s_object: dict[str, Any]) -> ServiceExport:
        return ServiceExport(metadata=self.convert_metadata(k8s_object))

    def convert_service_import(self, k8s_object: dict[str, Any]) -> ServiceImport:
        return ServiceImport(metadata=self.convert_metadata(k8s_object))

    def convert_policy(self, k8s_object: dict[str, Any]) -> Policy:
        """Convert any supported policy kind."""
        kind = PolicyKind(k8s_object.get("kind"))
        spec = k8s_object.get("spec") or {}
        metadata = self.convert_metadata(k8s_object)
        target_ref = self._parse_target_ref(spec.get("targetRef"))

        if kind == PolicyKind.TARGET_GROUP_POLICY:
            return TargetGroupPolicy(
                kind=kind,
                metadata=metadata,
                target_ref=target_ref,
                protocol=spec.get("protocol"),
                protocol_version=spec.get("protocolVersion"),
                health_check=self._parse_health_check(spec.get("healthCheck")),
            )
        if kind == PolicyKind.VPC_ASSOCIATION_POLICY:
            return VpcAssociationPolicy(
                kind=kind,
                metadata=metadata,
                target_ref=target_ref,
                associate_with_vpc=spec.get("associateWithVpc"),
                security_group_ids=list(spec.get("securityGroupIds") or []),
            )
        if kind == PolicyKind.ACCESS_LOG_POLICY:
            return AccessLogPolicy(
                kind=kind,
                metadata=metadata,
                target_ref=target_ref,
                destination_arn=spec.get("destinationArn"),
            )
        return IAMAuthPolicy(kind=kind, metadata=metadata, target_ref=target_ref, policy=spec.get("policy", ""))

    def convert_metadata(self, k8s_object: dict[str, Any]) -> ObjectMeta:
        metadata = k8s_object.get("metadata") or {}
        return ObjectMeta(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            uid=metadata.get("uid"),
            generation=metadata.get("generation"),
            labels=dict(metadata.get("labels") or {}),
            annotations=dict(metadata.get("annotations") or {}),
            deletion_timestamp=self._parse_timestamp(metadata.get("deletionTimestamp")),
        )

    def _parse_timestamp(self, timestamp: str | datetime | None) -> datetime | None:
        """Parse Kubernetes timestamp."""
        if not timestamp:
            return None
        if isinstance(timestamp, datetime):
            return timestamp
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00"))

    def _parse_condition(self, condition: dict[str, Any]) -> Condition:
        return Condition(
            type=condition.get("type", ""),
            status=condition.get("status", "Unknown"),
            reason=condition.get("reason", ""),
            message=condition.get("message", ""),
            observed_generation=condition.get("observedGeneration"),
            last_transition_time=self._parse_timestamp(condition.get("lastTransitionTime")),
        )

    def _parse_parent_ref(self, ref: dict[str, Any]) -> ParentReference:
        port = ref.get("port")
        return ParentReference(
            name=ref.get("name", ""),
            namespace=ref.get("namespace"),
            section_name=ref.get("sectionName"),
            port=int(port) if port is not None else None,
            group=ref.get("group", GATEWAY_API_GROUP),
            kind=ref.get("kind", "Gateway"),
        )

    def _parse_backend_ref(self, ref: dict[str, Any]) -> BackendRef:
        port = ref.get("port")
        weight = ref.get("weight")
        return BackendRef(
            name=ref.get("name", ""),
            kind=ref.get("kind", "Service"),
            group=ref.get("group", ""),
            namespace=ref.get("namespace"),
            port=int(port) if port is not None else None,
            weight=int(weight) if weight is not None else None,
        )

    def _parse_headers(self, headers: list[dict[str, Any]] | None) -> list[HeaderMatch]:
        return [
            HeaderMatch(name=header.get("name", ""), value=header.get("value", ""), type=header.get("type", "Exact"))
            for header in headers or []
        ]

    def _parse_http_match(self, match: dict[str, Any]) -> HTTPRouteMatch:
        path = match.get("path")
        return HTTPRouteMatch(
            headers=self._parse_headers(match.get("headers")),
            path=(
                HTTPPathMatch(
                    type=path.get("type", PathMatchType.PATH_PREFIX.value),
                    value=path.get("value", "/"),
                )
                if path is not None
                else None
            ),
            method=match.get("method"),
            query_params=list(match.get("queryParams") or []),
        )

    def _parse_grpc_match(self, match: dict[str, Any]) -> GRPCRouteMatch:
        method = match.get("method") or {}
        return GRPCRouteMatch(
            headers=self._parse_headers(match.get("headers")),
            method=GRPCMethodMatch(
                type=method.get("type", "Exact"),
                service=method.get("service"),
                method=method.get("method"),
            ),
        )

    def _parse_gateway_listener(self, listener: dict[str, Any]) -> GatewayListener:
        tls = listener.get("tls")
        allowed = listener.get("allowedRoutes")
        allowed_routes = None
        if allowed is not None:
            namespaces = allowed.get("namespaces") or {}
            selector = namespaces.get("selector") or {}
            allowed_routes = AllowedRoutes(
                namespaces_from=namespaces.get("from"),
                namespace_selector=dict(selector.get("matchLabels") or {}),
                kinds=[kind.get("kind", "") for kind in allowed.get("kinds") or []],
            )
        return GatewayListener(
            name=listener.get("name", ""),
            port=int(listener.get("port", 0)),
            protocol=listener.get("protocol", ""),
            hostname=listener.get("hostname"),
            tls_mode=(tls.get("mode") or TLSMode.TERMINATE.value) if tls is not None else None,
            tls_options=dict((tls or {}).get("options") or {}),
            allowed_routes=allowed_routes,
        )

    def _parse_target_ref(self, ref: dict[str, Any] | None) -> TargetRef | None:
        if not ref:
            return None
        return TargetRef(
            kind=ref.get("kind", ""),
            name=ref.get("name", ""),
            group=ref.get("group", ""),
            namespace=ref.get("namespace"),
        )

    def _parse_health_check(self, health_check: dict[str, Any] | None) -> HealthCheckConfig | None:
        if health_check is None:
            return None
        return HealthCheckConfig(
            enabled=health_check.get("enabled"),
            interval_seconds=health_check.get("intervalSeconds"),
            timeout_seconds=health_check.get("timeoutSeconds"),
            healthy_threshold_count=health_check.get("healthyThresholdCount"),
            unhealthy_threshold_count=health_check.get("unhealthyThresholdCount"),
            status_match=health_check.get("statusMatch"),
            path=health_check.get("path"),
            port=health_check.get("port"),
            protocol=health_check.get("protocol"),
            protocol_version=health_check.get("protocolVersion"),
        )
