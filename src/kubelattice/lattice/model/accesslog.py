"""Lattice access log subscription resource."""

from dataclasses import dataclass, field
from enum import Enum

from kubelattice.core.models.base import NamespacedName
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash

ACCESS_LOG_SUBSCRIPTION_ANNOTATION = "VpcLatticeAccessLogSubscription"


class SourceType(Enum):
    SERVICE_NETWORK = "ServiceNetwork"
    SERVICE = "Service"


class EventType(Enum):
    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


@dataclass
class AccessLogSubscriptionSpec:
    source_type: SourceType
    source_name: str
    destination_arn: str
    policy_name: NamespacedName
    event_type: EventType
    additional_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class AccessLogSubscription(Resource):
    kind = ResourceKind.ACCESS_LOG_SUBSCRIPTION

    spec: AccessLogSubscriptionSpec
    arn: str | None = None  # known once created, carried on the policy's annotation

    @property
    def is_deleted(self) -> bool:
        return self.spec.event_type == EventType.DELETE

    @classmethod
    def new(cls, stack: Stack, spec: AccessLogSubscriptionSpec, arn: str | None = None) -> "AccessLogSubscription":
        subscription = cls(stack=stack, id=id_from_hash(spec), spec=spec, arn=arn)
        stack.add_resource(subscription)
        return subscription
