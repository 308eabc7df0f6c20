"""IAM auth policy builder."""

from kubelattice.core.models import IAMAuthPolicy, RouteKind, ValidationError
from kubelattice.core.models.errors import LATTICE_UNSUPPORTED_TARGET_REF
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders.service import resolve_service_name
from kubelattice.lattice.model import iamauthpolicy as model
from kubelattice.lattice.model.naming import lattice_service_name
from kubelattice.utils.config import ControllerConfig

ROUTE_KINDS = {RouteKind.HTTP_ROUTE.value: RouteKind.HTTP_ROUTE, RouteKind.GRPC_ROUTE.value: RouteKind.GRPC_ROUTE}


async def build_iam_auth_policy(
    reader: ClusterReader, config: ControllerConfig, policy: IAMAuthPolicy
) -> model.IAMAuthPolicy:
    """Attach the policy document to a service network (Gateway) or a lattice service (route)."""
    target_ref = policy.target_ref
    if target_ref is None:
        raise ValidationError(LATTICE_UNSUPPORTED_TARGET_REF, "IAM auth policy has no targetRef")

    if target_ref.kind == "Gateway":
        return model.IAMAuthPolicy(type=model.SERVICE_NETWORK_TYPE, name=target_ref.name, policy=policy.policy)

    route_kind = ROUTE_KINDS.get(target_ref.kind)
    if route_kind is None:
        raise ValidationError(LATTICE_UNSUPPORTED_TARGET_REF, f"unsupported targetRef kind {target_ref.kind}")

    namespace = policy.target_namespace()
    route = await reader.get_route(route_kind, target_ref.name, namespace)
    if route is None:
        name = lattice_service_name(target_ref.name, namespace)
    else:
        name = await resolve_service_name(reader, route, config.controller_name)
    return model.IAMAuthPolicy(type=model.SERVICE_TYPE, name=name, policy=policy.policy)
