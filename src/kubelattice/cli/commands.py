"""CLI command implementations."""

import json
from collections.abc import Awaitable, Callable

from rich.console import Console
from rich.table import Table

from kubelattice.core.models import KubeLatticeError, NotFoundError, RouteKind
from kubelattice.k8s.client import K8sClient
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.builders import LatticeServiceBuilder, ServiceNetworkBuilder, TargetGroupBuilder
from kubelattice.lattice.model import (
    AccessLogSubscription,
    Listener,
    Resource,
    Rule,
    Service,
    ServiceNetwork,
    Stack,
    TargetGroup,
    Targets,
)
from kubelattice.lattice.model.stack import to_jsonable
from kubelattice.utils.config import ControllerConfig

console = Console()


async def _run_build(kubeconfig: str | None, output: str, build: Callable[[ClusterReader], Awaitable[Stack]]) -> None:
    k8s_client = K8sClient(kubeconfig)
    try:
        stack = await build(ClusterReader(k8s_client))
    except (KubeLatticeError, ConnectionError) as e:
        console.print(f"Error: {e}")
        raise SystemExit(1) from e
    finally:
        await k8s_client.close()

    if output == "json":
        _output_json(stack)
    else:
        _output_table(stack)


async def build_route_async(
    config: ControllerConfig, kubeconfig: str | None, kind: RouteKind, name: str, namespace: str, output: str
) -> None:
    """Build and print the lattice stack of a route."""

    async def build(reader: ClusterReader) -> Stack:
        route = await reader.get_route(kind, name, namespace)
        if route is None:
            raise NotFoundError(kind.value, namespace, name)
        stack, _ = await LatticeServiceBuilder(reader, config).build(route)
        return stack

    await _run_build(kubeconfig, output, build)


async def build_gateway_async(
    config: ControllerConfig, kubeconfig: str | None, name: str, namespace: str, output: str
) -> None:
    """Build and print the service network of a gateway."""

    async def build(reader: ClusterReader) -> Stack:
        gateway = await reader.get_gateway(name, namespace)
        if gateway is None:
            raise NotFoundError("Gateway", namespace, name)
        stack, _ = await ServiceNetworkBuilder(reader, config).build(gateway)
        return stack

    await _run_build(kubeconfig, output, build)


async def build_export_async(
    config: ControllerConfig, kubeconfig: str | None, name: str, namespace: str, output: str
) -> None:
    """Build and print the target groups of a ServiceExport."""

    async def build(reader: ClusterReader) -> Stack:
        service_export = await reader.get_service_export(name, namespace)
        if service_export is None:
            raise NotFoundError("ServiceExport", namespace, name)
        stack, _ = await TargetGroupBuilder(reader, config).build_export_stack(service_export)
        return stack

    await _run_build(kubeconfig, output, build)


def describe_resource(resource: Resource) -> str:
    """One-line summary of a resource for table output."""
    if isinstance(resource, Service):
        return resource.spec.lattice_service_name()
    if isinstance(resource, Listener):
        return f"{resource.spec.protocol}:{resource.spec.port}"
    if isinstance(resource, Rule):
        spec = resource.spec
        path = f"{'=' if spec.path_match_exact else ''}{spec.path_match_value}"
        method = f"{spec.method} " if spec.method else ""
        backends = ", ".join(f"{tg.stack_target_group_id[:12]}({tg.weight})" for tg in spec.action.target_groups)
        return f"{method}{path} -> {backends}"
    if isinstance(resource, TargetGroup):
        return f"{resource.spec.name} {resource.spec.protocol}:{resource.spec.port}"
    if isinstance(resource, Targets):
        return ", ".join(f"{t.target_ip}:{t.port}" for t in resource.spec.target_list) or "(none)"
    if isinstance(resource, ServiceNetwork):
        return f"{resource.spec.name} vpc-association={resource.spec.associate_to_vpc}"
    if isinstance(resource, AccessLogSubscription):
        return f"{resource.spec.event_type.value} {resource.spec.source_name} -> {resource.spec.destination_arn}"
    return ""


def _output_table(stack: Stack) -> None:
    """Output stack resources as a table, dependees first."""
    if len(stack) == 0:
        console.print(f"Stack {stack.stack_id} is empty")
        return

    table = Table(title=f"Stack {stack.stack_id}")
    table.add_column("KIND")
    table.add_column("ID")
    table.add_column("DELETED")
    table.add_column("DETAILS")

    for resource in stack.ordered_resources():
        table.add_row(
            resource.kind.value.rsplit("::", 1)[-1],
            resource.id,
            "yes" if getattr(resource, "is_deleted", False) else "",
            describe_resource(resource),
        )

    console.print(table)


def _output_json(stack: Stack) -> None:
    """Output stack resources as JSON."""
    resource_data = []
    for resource in stack.ordered_resources():
        resource_data.append(
            {
                "kind": resource.kind.value,
                "id": resource.id,
                "deleted": bool(getattr(resource, "is_deleted", False)),
                "spec": to_jsonable(resource.spec),
            }
        )

    print(json.dumps({"stack": str(stack.stack_id), "resources": resource_data}, indent=2))
