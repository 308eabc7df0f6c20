"""Policy CRD models (application-networking.k8s.aws)."""

from dataclasses import dataclass, field
from enum import Enum

from kubelattice.core.models.base import APPLICATION_NETWORKING_GROUP, NamespacedName, ObjectMeta


class PolicyKind(Enum):
    """Supported policy kinds."""

    TARGET_GROUP_POLICY = "TargetGroupPolicy"
    VPC_ASSOCIATION_POLICY = "VpcAssociationPolicy"
    ACCESS_LOG_POLICY = "AccessLogPolicy"
    IAM_AUTH_POLICY = "IAMAuthPolicy"

    @property
    def api_version(self) -> str:
        return f"{APPLICATION_NETWORKING_GROUP}/v1alpha1"


@dataclass(frozen=True)
class TargetRef:
    """Object a policy is attached to."""

    kind: str
    name: str
    group: str = ""
    namespace: str | None = None


@dataclass
class HealthCheckConfig:
    """TargetGroupPolicy health check settings."""

    enabled: bool | None = None
    interval_seconds: int | None = None
    timeout_seconds: int | None = None
    healthy_threshold_count: int | None = None
    unhealthy_threshold_count: int | None = None
    status_match: str | None = None
    path: str | None = None
    port: int | None = None
    protocol: str | None = None
    protocol_version: str | None = None


@dataclass
class Policy:
    """Base of all attached policies."""

    kind: PolicyKind
    metadata: ObjectMeta
    target_ref: TargetRef | None = None

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations

    def namespaced_name(self) -> NamespacedName:
        return self.metadata.namespaced_name()

    def is_deleted(self) -> bool:
        return self.metadata.is_deleted()

    def target_namespace(self) -> str:
        """Target ref namespace, defaulting to the policy's own."""
        if self.target_ref and self.target_ref.namespace:
            return self.target_ref.namespace
        return self.namespace


@dataclass
class TargetGroupPolicy(Policy):
    protocol: str | None = None
    protocol_version: str | None = None
    health_check: HealthCheckConfig | None = None


@dataclass
class VpcAssociationPolicy(Policy):
    associate_with_vpc: bool | None = None
    security_group_ids: list[str] = field(default_factory=list)


@dataclass
class AccessLogPolicy(Policy):
    destination_arn: str | None = None


@dataclass
class IAMAuthPolicy(Policy):
    policy: str = ""
