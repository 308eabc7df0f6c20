"""Model builders turning Kubernetes objects into lattice stacks."""

from kubelattice.lattice.builders.accesslog import AccessLogSubscriptionBuilder
from kubelattice.lattice.builders.iamauthpolicy import build_iam_auth_policy
from kubelattice.lattice.builders.listener import ListenerBuilder
from kubelattice.lattice.builders.rule import RuleBuilder
from kubelattice.lattice.builders.service import LatticeServiceBuilder, resolve_standalone
from kubelattice.lattice.builders.servicenetwork import ServiceNetworkBuilder
from kubelattice.lattice.builders.targetgroup import TargetGroupBuilder
from kubelattice.lattice.builders.targets import TargetsBuilder

__all__ = [
    "AccessLogSubscriptionBuilder",
    "LatticeServiceBuilder",
    "ListenerBuilder",
    "RuleBuilder",
    "ServiceNetworkBuilder",
    "TargetGroupBuilder",
    "TargetsBuilder",
    "build_iam_auth_policy",
    "resolve_standalone",
]
