"""Target group builder with its two entry points: route backend refs and service exports."""

import logging

from kubelattice.core.models import (
    BackendRef,
    InvalidBackendRefError,
    NamespacedName,
    NotFoundError,
    Route,
    RouteKind,
    Service,
    ServiceExport,
    TargetGroupPolicy,
    ValidationError,
)
from kubelattice.core.models.errors import LATTICE_UNSUPPORTED_IP_FAMILY
from kubelattice.k8s import annotations
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders.targets import TargetsBuilder
from kubelattice.lattice.model import ParentRefType, Stack, TargetGroup, TargetGroupSpec, id_from_hash
from kubelattice.lattice.model.naming import target_group_name
from kubelattice.lattice.model.targetgroup import (
    DEFAULT_TARGET_GROUP_PORT,
    IP_ADDRESS_TYPE_IPV4,
    IP_ADDRESS_TYPE_IPV6,
    PROTOCOL_HTTP,
    PROTOCOL_TCP,
    PROTOCOL_VERSION_GRPC,
    PROTOCOL_VERSION_HTTP1,
)
from kubelattice.lattice.policy import PolicyResolver
from kubelattice.utils.config import ControllerConfig

logger = logging.getLogger(__name__)

PARENT_REF_TYPES = {
    RouteKind.HTTP_ROUTE: ParentRefType.HTTP_ROUTE,
    RouteKind.GRPC_ROUTE: ParentRefType.GRPC_ROUTE,
    RouteKind.TLS_ROUTE: ParentRefType.TLS_ROUTE,
}


def ip_address_type(service: Service) -> str:
    """Lattice IP address type of a single-stack service."""
    families = service.ip_families
    if not families:
        return IP_ADDRESS_TYPE_IPV4
    if len(families) > 1:
        raise ValidationError(
            LATTICE_UNSUPPORTED_IP_FAMILY,
            f"dual stack service {service.namespaced_name()} is not supported",
            field="spec.ipFamilies",
        )
    if families[0] == "IPv4":
        return IP_ADDRESS_TYPE_IPV4
    if families[0] == "IPv6":
        return IP_ADDRESS_TYPE_IPV6
    raise ValidationError(
        LATTICE_UNSUPPORTED_IP_FAMILY, f"unknown ip family {families[0]}", field="spec.ipFamilies"
    )


class TargetGroupBuilder:
    """Builds target groups (and their targets) into a stack."""

    def __init__(
        self,
        reader: ClusterReader,
        config: ControllerConfig,
        policy_resolver: PolicyResolver | None = None,
        targets_builder: TargetsBuilder | None = None,
    ):
        self.reader = reader
        self.config = config
        self.policy_resolver = policy_resolver or PolicyResolver(reader)
        self.targets_builder = targets_builder or TargetsBuilder(reader)

    async def _protocol_settings(self, service_name: str, namespace: str, spec: TargetGroupSpec) -> None:
        """Fold an attached TargetGroupPolicy into protocol, version and health check."""
        policy = await self.policy_resolver.get_attached_policy(
            TargetGroupPolicy, NamespacedName(namespace=namespace, name=service_name)
        )
        if policy is None:
            return
        logger.debug("Applying TargetGroupPolicy %s to %s/%s", policy.namespaced_name(), namespace, service_name)
        if policy.protocol:
            spec.protocol = policy.protocol
        if policy.protocol_version:
            spec.protocol_version = policy.protocol_version
        spec.health_check = policy.health_check

    async def build_for_backend_ref(self, stack: Stack, route: Route, backend_ref: BackendRef) -> TargetGroup:
        """
        Target group for one route backend reference.

        Raises InvalidBackendRefError when the reference cannot be served. A
        missing backend does not fail while the route is being deleted.
        """
        if backend_ref.kind not in ("Service", "ServiceImport"):
            raise InvalidBackendRefError(backend_ref.name, f"unsupported backend kind {backend_ref.kind}")

        namespace = backend_ref.namespace_or(route.namespace)
        is_deleted = route.is_deleted()
        spec = TargetGroupSpec(
            name="",
            vpc_id=self.config.vpc_id,
            port=backend_ref.port or DEFAULT_TARGET_GROUP_PORT,
            protocol=PROTOCOL_HTTP,
            protocol_version=PROTOCOL_VERSION_HTTP1,
            ip_address_type=IP_ADDRESS_TYPE_IPV4,
            parent_ref_type=PARENT_REF_TYPES[route.kind],
            k8s_service_name=backend_ref.name,
            k8s_service_namespace=namespace,
            k8s_route_name=route.name,
            k8s_route_namespace=route.namespace,
            eks_cluster_name=self.config.cluster_name,
            is_service_import=backend_ref.is_service_import,
        )

        service: Service | None = None
        if backend_ref.is_service_import:
            service_import = await self.reader.get_service_import(backend_ref.name, namespace)
            if service_import is None:
                if not is_deleted:
                    raise InvalidBackendRefError(backend_ref.name, f"ServiceImport {namespace}/{backend_ref.name} not found")
            else:
                spec.vpc_id = service_import.annotations.get(annotations.SERVICE_IMPORT_VPC, "")
                spec.eks_cluster_name = service_import.annotations.get(annotations.SERVICE_IMPORT_CLUSTER, "")
        else:
            service = await self.reader.get_service(backend_ref.name, namespace)
            if service is None:
                if not is_deleted:
                    raise InvalidBackendRefError(backend_ref.name, f"Service {namespace}/{backend_ref.name} not found")
            else:
                try:
                    spec.ip_address_type = ip_address_type(service)
                except ValidationError as e:
                    raise InvalidBackendRefError(backend_ref.name, e.message) from e
            await self._protocol_settings(backend_ref.name, namespace, spec)

        if route.kind == RouteKind.GRPC_ROUTE:
            spec.protocol_version = PROTOCOL_VERSION_GRPC
        elif route.kind == RouteKind.TLS_ROUTE:
            spec.protocol = PROTOCOL_TCP
            spec.protocol_version = None

        spec.name = target_group_name(
            backend_ref.name,
            namespace,
            route.name,
            route.namespace,
            backend_ref.is_service_import,
            port=spec.port,
            protocol=spec.protocol,
            protocol_version=spec.protocol_version,
        )
        existing = stack.get_resource(TargetGroup, id_from_hash(spec))
        if existing is not None:
            return existing

        target_group = TargetGroup.new(stack, spec, is_deleted=is_deleted)
        logger.debug("Built target group %s (%s) for backend ref %s", spec.name, target_group.id, backend_ref.name)
        if service is not None and not is_deleted:
            declared = [backend_ref.port] if backend_ref.port else []
            await self.targets_builder.build(target_group, service, declared)
        return target_group

    async def build_for_service_export(self, stack: Stack, service_export: ServiceExport) -> list[TargetGroup]:
        """
        Target groups for an exported service, one per exported port.

        Without an export-port list a single group uses the service's first port.
        """
        namespace = service_export.namespace
        is_deleted = service_export.is_deleted()
        service = await self.reader.get_service(service_export.name, namespace)
        if service is None and not is_deleted:
            raise NotFoundError("Service", namespace, service_export.name)

        export_ports = annotations.parse_export_ports(service_export.annotations)
        ports: list[int | None] = list(export_ports) if export_ports else [None]

        address_type = ip_address_type(service) if service is not None else IP_ADDRESS_TYPE_IPV4
        target_groups = []
        for port in ports:
            group_port = port
            if group_port is None:
                group_port = service.ports[0].port if service is not None and service.ports else DEFAULT_TARGET_GROUP_PORT
            spec = TargetGroupSpec(
                name="",
                vpc_id=self.config.vpc_id,
                port=group_port,
                protocol=PROTOCOL_HTTP,
                protocol_version=PROTOCOL_VERSION_HTTP1,
                ip_address_type=address_type,
                parent_ref_type=ParentRefType.SERVICE_EXPORT,
                k8s_service_name=service_export.name,
                k8s_service_namespace=namespace,
                eks_cluster_name=self.config.cluster_name,
            )
            await self._protocol_settings(service_export.name, namespace, spec)
            spec.name = target_group_name(
                service_export.name,
                namespace,
                port=port,
                protocol=spec.protocol,
                protocol_version=spec.protocol_version,
            )

            target_group = TargetGroup.new(stack, spec, is_deleted=is_deleted)
            if service is not None and not is_deleted:
                await self.targets_builder.build(target_group, service, [port] if port else [])
            target_groups.append(target_group)
        return target_groups

    async def build_export_stack(self, service_export: ServiceExport) -> tuple[Stack, list[TargetGroup]]:
        stack = Stack(service_export.namespaced_name())
        return stack, await self.build_for_service_export(stack, service_export)

