"""Lattice service resource."""

from dataclasses import dataclass, field

from kubelattice.lattice.model.naming import lattice_service_name
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack


@dataclass
class ServiceSpec:
    route_name: str
    route_namespace: str
    route_type: str
    service_network_names: list[str] = field(default_factory=list)
    customer_domain_name: str = ""
    customer_cert_arn: str = ""
    service_name_override: str = ""
    allow_takeover_from: str = ""
    additional_tags: dict[str, str] = field(default_factory=dict)

    def lattice_service_name(self) -> str:
        if self.service_name_override:
            return self.service_name_override
        return lattice_service_name(self.route_name, self.route_namespace)

    def to_tags(self) -> dict[str, str]:
        return {
            "application-networking.k8s.aws/RouteName": self.route_name,
            "application-networking.k8s.aws/RouteNamespace": self.route_namespace,
            "application-networking.k8s.aws/RouteType": self.route_type,
        }


@dataclass
class Service(Resource):
    """One lattice service per route. Its id is the lattice service name."""

    kind = ResourceKind.SERVICE

    spec: ServiceSpec
    is_deleted: bool = False

    @classmethod
    def new(cls, stack: Stack, spec: ServiceSpec, is_deleted: bool = False) -> "Service":
        service = cls(stack=stack, id=spec.lattice_service_name(), spec=spec, is_deleted=is_deleted)
        stack.add_resource(service)
        return service

    def lattice_service_name(self) -> str:
        return self.spec.lattice_service_name()
