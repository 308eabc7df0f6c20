"""Lattice targets resource: the endpoints registered to one target group."""

from dataclasses import dataclass, field

from kubelattice.core.models.base import NamespacedName
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash


@dataclass
class Target:
    target_ip: str
    port: int
    ready: bool = True
    target_ref: NamespacedName | None = None


@dataclass
class TargetsSpec:
    stack_target_group_id: str
    target_list: list[Target] = field(default_factory=list)


@dataclass
class Targets(Resource):
    kind = ResourceKind.TARGETS

    spec: TargetsSpec

    @classmethod
    def new(cls, stack: Stack, spec: TargetsSpec) -> "Targets":
        targets = cls(stack=stack, id=id_from_hash(spec), spec=spec)
        stack.add_resource(targets)
        return targets
