"""
Listener rule priority allocation.

Rules are built without priorities. At synthesis time the desired rules of a
listener are matched against the rules already live on it: a desired rule
whose match conditions equal a live rule's keeps that rule's priority, every
other desired rule gets the lowest priority no live rule holds. Live rules
left unmatched are reported for deletion after the new rules are in place.
"""

import logging
from dataclasses import dataclass, field

from kubelattice.core.models import ValidationError
from kubelattice.core.models.errors import LATTICE_RULE_PRIORITY_EXHAUSTED
from kubelattice.lattice.model import Rule

logger = logging.getLogger(__name__)

MIN_RULE_PRIORITY = 1
MAX_RULE_PRIORITY = 100


@dataclass
class LiveRule:
    """A rule as it exists on the live listener."""

    rule_id: str | None
    priority: int
    match_key: tuple


@dataclass
class PriorityPlan:
    priorities: dict[str, int] = field(default_factory=dict)  # stack rule id -> priority
    reused: dict[str, LiveRule] = field(default_factory=dict)  # stack rule id -> live rule it updates
    deletions: list[LiveRule] = field(default_factory=list)


class RulePriorityAllocator:
    def __init__(self, min_priority: int = MIN_RULE_PRIORITY, max_priority: int = MAX_RULE_PRIORITY):
        self.min_priority = min_priority
        self.max_priority = max_priority

    def allocate(self, live_rules: list[LiveRule], desired_rules: list[Rule]) -> PriorityPlan:
        plan = PriorityPlan()
        unmatched = list(live_rules)
        pending: list[Rule] = []

        for rule in desired_rules:
            key = rule.spec.match_key()
            live = next((candidate for candidate in unmatched if candidate.match_key == key), None)
            if live is None:
                pending.append(rule)
                continue
            unmatched.remove(live)
            plan.priorities[rule.id] = live.priority
            plan.reused[rule.id] = live

        # unmatched live rules are removed only after creation, so their priorities stay taken
        taken = {live.priority for live in live_rules}
        candidates = (p for p in range(self.min_priority, self.max_priority + 1) if p not in taken)
        for rule in pending:
            priority = next(candidates, None)
            if priority is None:
                raise ValidationError(
                    LATTICE_RULE_PRIORITY_EXHAUSTED,
                    f"no free rule priority in [{self.min_priority}, {self.max_priority}] "
                    f"for listener {rule.spec.stack_listener_id}",
                )
            plan.priorities[rule.id] = priority
            logger.debug("Assigned priority %d to rule %s", priority, rule.id)

        plan.deletions = unmatched
        return plan
