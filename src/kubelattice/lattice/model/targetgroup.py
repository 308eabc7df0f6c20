"""Lattice target group resource."""

from dataclasses import dataclass
from enum import Enum

from kubelattice.core.models.errors import LATTICE_INVALID_TARGET_GROUP, ValidationError
from kubelattice.core.models.policy import HealthCheckConfig
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash

TARGET_GROUP_TYPE_IP = "IP"

PROTOCOL_HTTP = "HTTP"
PROTOCOL_TCP = "TCP"
PROTOCOL_VERSION_HTTP1 = "HTTP1"
PROTOCOL_VERSION_GRPC = "GRPC"

IP_ADDRESS_TYPE_IPV4 = "IPV4"
IP_ADDRESS_TYPE_IPV6 = "IPV6"

DEFAULT_TARGET_GROUP_PORT = 80


class ParentRefType(Enum):
    """Which kind of object a target group was built for."""

    SERVICE_EXPORT = "ServiceExport"
    HTTP_ROUTE = "HTTPRoute"
    GRPC_ROUTE = "GRPCRoute"
    TLS_ROUTE = "TLSRoute"


@dataclass
class TargetGroupSpec:
    name: str
    vpc_id: str
    port: int
    protocol: str
    protocol_version: str | None
    ip_address_type: str
    parent_ref_type: ParentRefType
    k8s_service_name: str
    k8s_service_namespace: str
    k8s_route_name: str = ""
    k8s_route_namespace: str = ""
    eks_cluster_name: str = ""
    is_service_import: bool = False
    type: str = TARGET_GROUP_TYPE_IP
    health_check: HealthCheckConfig | None = None

    @property
    def is_service_export(self) -> bool:
        return self.parent_ref_type == ParentRefType.SERVICE_EXPORT

    @property
    def is_route(self) -> bool:
        return self.parent_ref_type != ParentRefType.SERVICE_EXPORT

    def validate(self) -> None:
        required = {
            "name": self.name,
            "k8s_service_name": self.k8s_service_name,
            "k8s_service_namespace": self.k8s_service_namespace,
            "protocol": self.protocol,
            "ip_address_type": self.ip_address_type,
        }
        # ServiceImport groups point at another cluster; their VPC may be unknown locally.
        if not self.is_service_import:
            required["vpc_id"] = self.vpc_id
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValidationError(
                LATTICE_INVALID_TARGET_GROUP, f"missing required fields: {', '.join(missing)}", field=missing[0]
            )
        if self.is_route and (not self.k8s_route_name or not self.k8s_route_namespace):
            raise ValidationError(
                LATTICE_INVALID_TARGET_GROUP, "route name or namespace missing for route-based target group"
            )

    def to_tags(self) -> dict[str, str]:
        tags = {
            "K8SServiceName": self.k8s_service_name,
            "K8SServiceNamespace": self.k8s_service_namespace,
            "K8SParentRefType": self.parent_ref_type.value,
        }
        if self.eks_cluster_name:
            tags["EKSClusterName"] = self.eks_cluster_name
        if self.is_route:
            tags["K8SRouteName"] = self.k8s_route_name
            tags["K8SRouteNamespace"] = self.k8s_route_namespace
        return tags


@dataclass
class TargetGroup(Resource):
    kind = ResourceKind.TARGET_GROUP

    spec: TargetGroupSpec
    is_deleted: bool = False

    @classmethod
    def new(cls, stack: Stack, spec: TargetGroupSpec, is_deleted: bool = False) -> "TargetGroup":
        """Add a target group, or return the one already built from an identical spec."""
        spec.validate()
        tg_id = id_from_hash(spec)
        existing = stack.get_resource(cls, tg_id)
        if existing is not None:
            return existing
        target_group = cls(stack=stack, id=tg_id, spec=spec, is_deleted=is_deleted)
        stack.add_resource(target_group)
        return target_group
