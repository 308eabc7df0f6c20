"""Main CLI entry point."""

import asyncio

import click
from pydantic import ValidationError

from kubelattice.cli.commands import build_export_async, build_gateway_async, build_route_async
from kubelattice.core.models import RouteKind
from kubelattice.utils import load_config, setup_logging

OUTPUT_FORMATS = click.Choice(["table", "json"])


@click.group()
@click.version_option()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Controller config YAML file")
@click.option("--kubeconfig", type=click.Path(dir_okay=False), help="Path to kubeconfig (in-cluster config if unset)")
@click.option("--log-level", help="Log level, overrides the configured one")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, kubeconfig: str | None, log_level: str | None) -> None:
    """kubelattice - Build VPC Lattice resource models from Gateway API objects."""
    try:
        config = load_config(config_path)
    except ValidationError as err:
        raise click.ClickException(f"Invalid configuration: {err}") from err
    if log_level:
        config.log_level = log_level.upper()
    setup_logging(config.log_level)
    ctx.obj = {"config": config, "kubeconfig": kubeconfig}


@cli.group()
def build() -> None:
    """Build the lattice stack of a Kubernetes object and print it."""
    pass


@build.command("route")
@click.argument("kind", type=click.Choice([kind.value for kind in RouteKind]))
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="Route namespace")
@click.option("--output", "-o", type=OUTPUT_FORMATS, default="table", help="Output format")
@click.pass_obj
def build_route(obj: dict, kind: str, name: str, namespace: str, output: str) -> None:
    """Build the service, listeners, rules and target groups of a route."""
    asyncio.run(build_route_async(obj["config"], obj["kubeconfig"], RouteKind(kind), name, namespace, output))


@build.command("gateway")
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="Gateway namespace")
@click.option("--output", "-o", type=OUTPUT_FORMATS, default="table", help="Output format")
@click.pass_obj
def build_gateway(obj: dict, name: str, namespace: str, output: str) -> None:
    """Build the service network of a gateway."""
    asyncio.run(build_gateway_async(obj["config"], obj["kubeconfig"], name, namespace, output))


@build.command("export")
@click.argument("name")
@click.option("--namespace", "-n", default="default", show_default=True, help="ServiceExport namespace")
@click.option("--output", "-o", type=OUTPUT_FORMATS, default="table", help="Output format")
@click.pass_obj
def build_export(obj: dict, name: str, namespace: str, output: str) -> None:
    """Build the target groups of a ServiceExport."""
    asyncio.run(build_export_async(obj["config"], obj["kubeconfig"], name, namespace, output))


if __name__ == "__main__":
    cli()
