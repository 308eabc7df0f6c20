"""Lattice service network resource, built from a Gateway."""

from dataclasses import dataclass, field

from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack


@dataclass
class ServiceNetworkSpec:
    name: str
    account: str = ""
    associate_to_vpc: bool = True
    security_group_ids: list[str] = field(default_factory=list)
    additional_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ServiceNetwork(Resource):
    """Keyed by gateway name."""

    kind = ResourceKind.SERVICE_NETWORK

    spec: ServiceNetworkSpec
    is_deleted: bool = False

    @classmethod
    def new(cls, stack: Stack, spec: ServiceNetworkSpec, is_deleted: bool = False) -> "ServiceNetwork":
        service_network = cls(stack=stack, id=spec.name, spec=spec, is_deleted=is_deleted)
        stack.add_resource(service_network)
        return service_network
