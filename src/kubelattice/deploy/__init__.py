"""Deploy boundary: stack deployment and synthesis-time bookkeeping."""

from kubelattice.deploy.deployer import SynthesizerStackDeployer, deploy
from kubelattice.deploy.priority import LiveRule, PriorityPlan, RulePriorityAllocator
from kubelattice.deploy.refstore import TargetGroupReferenceStore

__all__ = [
    "LiveRule",
    "PriorityPlan",
    "RulePriorityAllocator",
    "SynthesizerStackDeployer",
    "TargetGroupReferenceStore",
    "deploy",
]
