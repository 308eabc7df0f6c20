"""Rule builder: one rule per route rule under a non-passthrough listener."""

import logging

from kubelattice.core.models import (
    GRPCRouteMatch,
    HTTPRouteMatch,
    InvalidBackendRefError,
    PathMatchType,
    Route,
    RouteKind,
    RouteMatch,
    RouteRule,
    ValidationError,
)
from kubelattice.core.models.errors import (
    LATTICE_EXCEED_MAX_HEADER_MATCHES,
    LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES,
    LATTICE_UNSUPPORTED_HEADER_MATCH_TYPE,
    LATTICE_UNSUPPORTED_MATCH_TYPE,
    LATTICE_UNSUPPORTED_PATH_MATCH_TYPE,
)
from kubelattice.lattice.builders.targetgroup import TargetGroupBuilder
from kubelattice.lattice.model import (
    INVALID_BACKEND_REF_TG_ID,
    HeaderMatchSpec,
    Listener,
    Resource,
    Rule,
    RuleAction,
    RuleSpec,
    RuleTargetGroup,
    Stack,
    TargetGroup,
)
from kubelattice.lattice.model.rule import MAX_HEADER_MATCHES

logger = logging.getLogger(__name__)

HTTP_METHOD_POST = "POST"


class RuleBuilder:
    """Translates route match blocks into lattice rules."""

    def __init__(self, target_group_builder: TargetGroupBuilder):
        self.target_group_builder = target_group_builder

    async def build(self, stack: Stack, route: Route, listener: Listener) -> list[Rule]:
        if route.is_deleted():
            logger.debug("Skipping rule creation since route %s is deleted", route.namespaced_name())
            return []

        rules = []
        for index, route_rule in enumerate(route.rules):
            spec = RuleSpec(stack_listener_id=listener.id, rule_index=index)
            self.apply_matches(route, route_rule, spec)
            spec.action = await self.build_forward_action(stack, route, route_rule)

            rule = Rule.new(stack, spec)
            stack.add_dependency(listener, rule)
            self.depend_on_target_groups(stack, spec.action, rule)
            rules.append(rule)
        return rules

    def apply_matches(self, route: Route, route_rule: RouteRule, spec: RuleSpec) -> None:
        """Fill path, method and header conditions. A rule without matches matches everything."""
        if len(route_rule.matches) > 1:
            raise ValidationError(LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES)

        if not route_rule.matches:
            spec.path_match_prefix = True
            spec.path_match_exact = False
            spec.path_match_value = "/"
            if route.kind == RouteKind.GRPC_ROUTE:
                spec.method = HTTP_METHOD_POST
            return

        match = route_rule.matches[0]
        if isinstance(match, HTTPRouteMatch):
            self._apply_http_match(match, spec)
        elif isinstance(match, GRPCRouteMatch):
            self._apply_grpc_match(match, spec)
        else:
            raise ValidationError(LATTICE_UNSUPPORTED_MATCH_TYPE, f"unsupported rule match {type(match).__name__}")
        self._apply_header_matches(match, spec)

    def _apply_http_match(self, match: HTTPRouteMatch, spec: RuleSpec) -> None:
        if match.path is not None:
            if match.path.type == PathMatchType.EXACT.value:
                spec.path_match_exact, spec.path_match_prefix = True, False
            elif match.path.type == PathMatchType.PATH_PREFIX.value:
                spec.path_match_exact, spec.path_match_prefix = False, True
            else:
                raise ValidationError(
                    LATTICE_UNSUPPORTED_PATH_MATCH_TYPE, f"unsupported path match type {match.path.type}", field="path"
                )
            spec.path_match_value = match.path.value

        if match.method:
            spec.method = match.method

        if match.query_params:
            raise ValidationError(LATTICE_UNSUPPORTED_MATCH_TYPE, "query parameter matches are not supported")

    def _apply_grpc_match(self, match: GRPCRouteMatch, spec: RuleSpec) -> None:
        # GRPC is always POST
        spec.method = HTTP_METHOD_POST
        method = match.method
        if method.service is None and method.method is not None:
            raise ValidationError(
                LATTICE_UNSUPPORTED_MATCH_TYPE, "cannot match a gRPC method without its service", field="method"
            )
        if method.type not in (None, "Exact"):
            raise ValidationError(LATTICE_UNSUPPORTED_MATCH_TYPE, f"unsupported gRPC method match type {method.type}")

        if method.service is None:
            spec.path_match_exact, spec.path_match_prefix, spec.path_match_value = False, True, "/"
        elif method.method is None:
            spec.path_match_exact, spec.path_match_prefix = False, True
            spec.path_match_value = f"/{method.service}/"
        else:
            spec.path_match_exact, spec.path_match_prefix = True, False
            spec.path_match_value = f"/{method.service}/{method.method}"

    def _apply_header_matches(self, match: RouteMatch, spec: RuleSpec) -> None:
        if len(match.headers) > MAX_HEADER_MATCHES:
            raise ValidationError(
                LATTICE_EXCEED_MAX_HEADER_MATCHES,
                f"{len(match.headers)} header matches, at most {MAX_HEADER_MATCHES} are supported",
                field="headers",
            )
        for header in match.headers:
            if header.type is not None and header.type != "Exact":
                raise ValidationError(
                    LATTICE_UNSUPPORTED_HEADER_MATCH_TYPE, f"unsupported header match type {header.type}"
                )
            spec.matched_headers.append(HeaderMatchSpec(name=header.name, exact=header.value))

    async def build_forward_action(self, stack: Stack, route: Route, route_rule: RouteRule) -> RuleAction:
        """
        Weighted target groups for a rule's backend refs.

        A backend ref that cannot be built is replaced by the invalid-backend-ref
        placeholder with its declared weight, so the valid backends still get traffic.
        """
        target_groups = []
        for backend_ref in route_rule.backend_refs:
            weight = backend_ref.weight if backend_ref.weight is not None else 1
            try:
                target_group = await self.target_group_builder.build_for_backend_ref(stack, route, backend_ref)
            except InvalidBackendRefError as e:
                logger.info("Invalid backendRef found on route %s: %s", route.namespaced_name(), e)
                target_groups.append(RuleTargetGroup(stack_target_group_id=INVALID_BACKEND_REF_TG_ID, weight=weight))
                continue
            target_groups.append(RuleTargetGroup(stack_target_group_id=target_group.id, weight=weight))
        return RuleAction(target_groups=target_groups)

    def depend_on_target_groups(self, stack: Stack, action: RuleAction, depender: Resource) -> None:
        for rule_tg in action.target_groups:
            if rule_tg.is_invalid_backend_ref():
                continue
            target_group = stack.get_resource(TargetGroup, rule_tg.stack_target_group_id)
            if target_group is not None:
                stack.add_dependency(target_group, depender)
