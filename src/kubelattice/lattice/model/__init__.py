"""Lattice resource graph."""

from kubelattice.lattice.model.accesslog import (
    ACCESS_LOG_SUBSCRIPTION_ANNOTATION,
    AccessLogSubscription,
    AccessLogSubscriptionSpec,
    EventType,
    SourceType,
)
from kubelattice.lattice.model.iamauthpolicy import IAMAuthPolicy
from kubelattice.lattice.model.listener import DefaultAction, Listener, ListenerSpec
from kubelattice.lattice.model.rule import (
    INVALID_BACKEND_REF_TG_ID,
    HeaderMatchSpec,
    Rule,
    RuleAction,
    RuleSpec,
    RuleTargetGroup,
)
from kubelattice.lattice.model.service import Service, ServiceSpec
from kubelattice.lattice.model.servicenetwork import ServiceNetwork, ServiceNetworkSpec
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash
from kubelattice.lattice.model.targetgroup import ParentRefType, TargetGroup, TargetGroupSpec
from kubelattice.lattice.model.targets import Target, Targets, TargetsSpec

__all__ = [
    "ACCESS_LOG_SUBSCRIPTION_ANNOTATION",
    "INVALID_BACKEND_REF_TG_ID",
    "AccessLogSubscription",
    "AccessLogSubscriptionSpec",
    "DefaultAction",
    "EventType",
    "HeaderMatchSpec",
    "IAMAuthPolicy",
    "Listener",
    "ListenerSpec",
    "ParentRefType",
    "Resource",
    "ResourceKind",
    "Rule",
    "RuleAction",
    "RuleSpec",
    "RuleTargetGroup",
    "Service",
    "ServiceNetwork",
    "ServiceNetworkSpec",
    "ServiceSpec",
    "SourceType",
    "Stack",
    "Target",
    "TargetGroup",
    "TargetGroupSpec",
    "Targets",
    "TargetsSpec",
    "id_from_hash",
]
