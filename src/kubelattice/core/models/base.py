"""Shared Kubernetes metadata models."""

from dataclasses import dataclass, field
from datetime import datetime

GATEWAY_API_GROUP = "gateway.networking.k8s.io"
CORE_GROUP = ""
MCS_GROUP = "multicluster.x-k8s.io"
APPLICATION_NETWORKING_GROUP = "application-networking.k8s.aws"


@dataclass(frozen=True)
class NamespacedName:
    """Namespace/name key of a Kubernetes object."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class GroupKind:
    """API group and kind of a Kubernetes object."""

    group: str
    kind: str


@dataclass
class Condition:
    """Kubernetes status condition (metav1.Condition)."""

    type: str
    status: str
    reason: str = ""
    message: str = ""
    observed_generation: int | None = None
    last_transition_time: datetime | None = None

    def is_true(self) -> bool:
        return self.status == "True"


@dataclass
class ObjectMeta:
    """Subset of Kubernetes object metadata used by the builders."""

    name: str
    namespace: str = ""
    uid: str | None = None
    generation: int | None = None
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    deletion_timestamp: datetime | None = None

    def namespaced_name(self) -> NamespacedName:
        return NamespacedName(namespace=self.namespace, name=self.name)

    def is_deleted(self) -> bool:
        return self.deletion_timestamp is not None
