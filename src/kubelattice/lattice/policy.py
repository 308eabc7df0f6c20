"""Find the policy attached to a Kubernetes object."""

import logging
from typing import TypeVar

from kubelattice.core.models import (
    CORE_GROUP,
    GATEWAY_API_GROUP,
    AccessLogPolicy,
    GroupKind,
    IAMAuthPolicy,
    NamespacedName,
    Policy,
    PolicyKind,
    TargetGroupPolicy,
    VpcAssociationPolicy,
)
from kubelattice.k8s.reader import ClusterReader

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=Policy)

GATEWAY = GroupKind(GATEWAY_API_GROUP, "Gateway")
HTTP_ROUTE = GroupKind(GATEWAY_API_GROUP, "HTTPRoute")
GRPC_ROUTE = GroupKind(GATEWAY_API_GROUP, "GRPCRoute")
SERVICE = GroupKind(CORE_GROUP, "Service")

# policy class -> (kind listed from the cluster, target kinds it may attach to)
POLICY_KINDS: dict[type[Policy], tuple[PolicyKind, frozenset[GroupKind]]] = {
    TargetGroupPolicy: (PolicyKind.TARGET_GROUP_POLICY, frozenset({SERVICE})),
    VpcAssociationPolicy: (PolicyKind.VPC_ASSOCIATION_POLICY, frozenset({GATEWAY})),
    AccessLogPolicy: (PolicyKind.ACCESS_LOG_POLICY, frozenset({GATEWAY, HTTP_ROUTE, GRPC_ROUTE})),
    IAMAuthPolicy: (PolicyKind.IAM_AUTH_POLICY, frozenset({GATEWAY, HTTP_ROUTE, GRPC_ROUTE})),
}


def valid_target_kinds(policy_type: type[Policy]) -> frozenset[GroupKind]:
    return POLICY_KINDS[policy_type][1]


def targets_object(policy: Policy, target: NamespacedName, policy_type: type[Policy]) -> bool:
    """Does the policy's targetRef name this object, with a kind the policy type supports?"""
    ref = policy.target_ref
    if ref is None:
        return False
    if GroupKind(ref.group, ref.kind) not in valid_target_kinds(policy_type):
        return False
    return ref.name == target.name and policy.target_namespace() == target.namespace


class PolicyResolver:
    """Resolves attached policies by scanning the policies in the target's namespace."""

    def __init__(self, reader: ClusterReader):
        self.reader = reader

    async def get_attached_policies(self, policy_type: type[P], target: NamespacedName) -> list[P]:
        kind, _ = POLICY_KINDS[policy_type]
        policies = await self.reader.list_policies(kind, target.namespace)
        return [
            policy
            for policy in policies
            if isinstance(policy, policy_type) and targets_object(policy, target, policy_type)
        ]

    async def get_attached_policy(self, policy_type: type[P], target: NamespacedName) -> P | None:
        """First policy of the type attached to target, or None (also when the CRD is not installed)."""
        matched = await self.get_attached_policies(policy_type, target)
        if not matched:
            return None
        if len(matched) > 1:
            logger.debug(
                "%d %s policies target %s, using %s",
                len(matched),
                policy_type.__name__,
                target,
                matched[0].namespaced_name(),
            )
        return matched[0]
