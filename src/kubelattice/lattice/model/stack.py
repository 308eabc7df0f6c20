"""Resource graph produced by one model-build pass."""

import dataclasses
import hashlib
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, TypeVar

from kubelattice.core.models.base import NamespacedName


class ResourceKind(Enum):
    """Kinds of lattice resources a stack can hold."""

    SERVICE = "AWS::VPCServiceNetwork::Service"
    LISTENER = "AWS::VPCServiceNetwork::Listener"
    RULE = "AWS::VPCServiceNetwork::Rule"
    TARGET_GROUP = "AWS::VPCServiceNetwork::TargetGroup"
    TARGETS = "AWS::VPCServiceNetwork::Targets"
    SERVICE_NETWORK = "AWS::VPCServiceNetwork::ServiceNetwork"
    ACCESS_LOG_SUBSCRIPTION = "AWS::VPCServiceNetwork::AccessLogSubscription"


def to_jsonable(value: Any) -> Any:
    """Convert specs (dataclasses, enums, containers) into plain JSON values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def id_from_hash(spec: Any) -> str:
    """Deterministic stack-local id: sha256 of the spec's canonical JSON."""
    payload = json.dumps(to_jsonable(spec), sort_keys=True, separators=(",", ":"))
    return "id-" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class Resource:
    """Base of every stack resource."""

    kind: ClassVar[ResourceKind]

    stack: "Stack" = field(repr=False, compare=False)
    id: str

    def uid(self) -> tuple[ResourceKind, str]:
        return (self.kind, self.id)


R = TypeVar("R", bound=Resource)


class Stack:
    """
    All resources built from one triggering Kubernetes object.

    Resources are keyed by (kind, id); iteration and listing keep insertion
    order. Dependencies are edges dependee -> depender, and
    topological_traversal visits dependees before their dependers.
    """

    def __init__(self, stack_id: NamespacedName):
        self.stack_id = stack_id
        self._resources: dict[tuple[ResourceKind, str], Resource] = {}
        self._edges: dict[tuple[ResourceKind, str], list[tuple[ResourceKind, str]]] = {}

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, resource: Resource) -> bool:
        return resource.uid() in self._resources

    def add_resource(self, resource: Resource) -> None:
        uid = resource.uid()
        if uid in self._resources:
            raise ValueError(f"resource already exists, type: {resource.kind.value}, id: {resource.id}")
        self._resources[uid] = resource
        self._edges[uid] = []

    def get_resource(self, resource_type: type[R], resource_id: str) -> R | None:
        resource = self._resources.get((resource_type.kind, resource_id))
        if resource is None or not isinstance(resource, resource_type):
            return None
        return resource

    def list_resources(self, resource_type: type[R]) -> list[R]:
        """All resources of one type, in the order they were added."""
        return [r for r in self._resources.values() if isinstance(r, resource_type)]

    def resources(self) -> list[Resource]:
        return list(self._resources.values())

    def add_dependency(self, dependee: Resource, depender: Resource) -> None:
        for resource, role in ((dependee, "dependee"), (depender, "depender")):
            if resource.uid() not in self._resources:
                raise ValueError(f"{role} resource doesn't exist, type: {resource.kind.value}, id: {resource.id}")
        edges = self._edges[dependee.uid()]
        if depender.uid() not in edges:
            edges.append(depender.uid())

    def topological_traversal(self, visitor: Callable[[Resource], None]) -> None:
        """Visit every resource after all of its dependees, ties broken by insertion order."""
        in_degree = dict.fromkeys(self._resources, 0)
        for targets in self._edges.values():
            for target in targets:
                in_degree[target] += 1

        order = list(self._resources)
        visited: set[tuple[ResourceKind, str]] = set()
        while len(visited) < len(order):
            ready = next((uid for uid in order if uid not in visited and in_degree[uid] == 0), None)
            if ready is None:
                raise ValueError(f"dependency cycle in stack {self.stack_id}")
            visited.add(ready)
            visitor(self._resources[ready])
            for target in self._edges[ready]:
                in_degree[target] -= 1

    def ordered_resources(self) -> list[Resource]:
        ordered: list[Resource] = []
        self.topological_traversal(ordered.append)
        return ordered
