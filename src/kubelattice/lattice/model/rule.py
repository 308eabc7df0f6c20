"""Lattice listener rule resource."""

from dataclasses import dataclass, field

from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash

INVALID_BACKEND_REF_TG_ID = "invalid-backend-ref"

MAX_HEADER_MATCHES = 5


@dataclass
class RuleTargetGroup:
    """Weighted forward to a stack target group."""

    stack_target_group_id: str
    weight: int = 1

    def is_invalid_backend_ref(self) -> bool:
        return self.stack_target_group_id == INVALID_BACKEND_REF_TG_ID


@dataclass
class RuleAction:
    target_groups: list[RuleTargetGroup] = field(default_factory=list)


@dataclass
class HeaderMatchSpec:
    name: str
    exact: str
    case_sensitive: bool = False


@dataclass
class RuleSpec:
    """
    Match conditions and forward action of one rule.

    Priority is not part of the spec; it is allocated against the live
    listener during synthesis. rule_index keeps two identical match blocks of
    one route apart.
    """

    stack_listener_id: str
    rule_index: int = 0
    path_match_value: str = "/"
    path_match_exact: bool = False
    path_match_prefix: bool = True
    method: str = ""
    matched_headers: list[HeaderMatchSpec] = field(default_factory=list)
    action: RuleAction = field(default_factory=RuleAction)

    def match_key(self) -> tuple:
        """Identity of the match conditions, independent of the action."""
        headers = tuple(sorted((h.name.lower(), h.exact, h.case_sensitive) for h in self.matched_headers))
        return (self.path_match_value, self.path_match_exact, self.path_match_prefix, self.method, headers)


@dataclass
class Rule(Resource):
    kind = ResourceKind.RULE

    spec: RuleSpec

    @classmethod
    def new(cls, stack: Stack, spec: RuleSpec) -> "Rule":
        rule = cls(stack=stack, id=id_from_hash(spec), spec=spec)
        stack.add_resource(rule)
        return rule
