"""Synthesizer-driven stack deployment."""

import logging
from typing import Sequence

from kubelattice.core.interfaces import ResourceSynthesizer, StackDeployer
from kubelattice.lattice.model import Stack

logger = logging.getLogger(__name__)


async def deploy(stack: Stack, synthesizers: Sequence[ResourceSynthesizer]) -> None:
    """
    Run every synthesizer over the stack, then post-synthesize in reverse.

    The first failing synthesizer stops the deployment; post-synthesis only
    runs once everything has been synthesized.
    """
    for synthesizer in synthesizers:
        logger.debug("Synthesizing stack %s with %s", stack.stack_id, type(synthesizer).__name__)
        await synthesizer.synthesize(stack)

    for synthesizer in reversed(synthesizers):
        await synthesizer.post_synthesize(stack)

    logger.info("Deployed stack %s (%d resources)", stack.stack_id, len(stack))


class SynthesizerStackDeployer(StackDeployer):
    """StackDeployer over a fixed, dependency-ordered list of synthesizers."""

    def __init__(self, synthesizers: Sequence[ResourceSynthesizer]):
        self._synthesizers = list(synthesizers)

    def synthesizers(self) -> Sequence[ResourceSynthesizer]:
        return list(self._synthesizers)

    async def deploy(self, stack: Stack) -> None:
        await deploy(stack, self._synthesizers)
