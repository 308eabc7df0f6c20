"""Unit tests for the CLI."""

import json
import logging

import pytest
from click.testing import CliRunner

from kubelattice.cli import commands
from kubelattice.cli.main import cli
from tests.conftest import FakeClusterClient, make_gateway, make_gateway_class, make_route, make_service


class ClosableFakeClient(FakeClusterClient):
    async def close(self):
        pass


@pytest.fixture
def cluster(monkeypatch):
    fake = ClosableFakeClient(make_gateway_class(), make_gateway(), make_route(), make_service())
    monkeypatch.setattr(commands, "K8sClient", lambda kubeconfig=None: fake)
    for var in ("CLUSTER_VPC_ID", "DEFAULT_SERVICE_NETWORK", "ENABLE_SERVICE_NETWORK_OVERRIDE", "LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CLUSTER_VPC_ID", "vpc-123")
    yield fake
    logging.getLogger("kubelattice").handlers.clear()


class TestBuildCommands:
    """Test the build command group."""

    def test_route_json(self, cluster):
        result = CliRunner().invoke(cli, ["--log-level", "error", "build", "route", "HTTPRoute", "svc1", "-n", "ns1", "-o", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        kinds = [resource["kind"].rsplit("::", 1)[-1] for resource in data["resources"]]
        assert data["stack"] == "ns1/svc1"
        assert kinds == ["Service", "TargetGroup", "Targets", "Listener", "Rule"]

    def test_route_table(self, cluster):
        result = CliRunner().invoke(cli, ["build", "route", "HTTPRoute", "svc1", "-n", "ns1"])

        assert result.exit_code == 0, result.output
        assert "ns1/svc1" in result.output

    def test_gateway(self, cluster):
        result = CliRunner().invoke(cli, ["--log-level", "error", "build", "gateway", "gw1", "-n", "ns1", "-o", "json"])

        assert result.exit_code == 0, result.output
        [network] = json.loads(result.output)["resources"]
        assert network["id"] == "gw1"
        assert network["spec"]["associate_to_vpc"] is True

    def test_missing_route(self, cluster):
        result = CliRunner().invoke(cli, ["build", "route", "HTTPRoute", "nope", "-n", "ns1"])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_missing_export(self, cluster):
        result = CliRunner().invoke(cli, ["build", "export", "tg1", "-n", "ns1"])

        assert result.exit_code == 1
        assert "ServiceExport ns1/tg1 not found" in result.output

    def test_invalid_config(self, cluster, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("enable_service_network_override: definitely\n")

        result = CliRunner().invoke(cli, ["--config", str(path), "build", "gateway", "gw1", "-n", "ns1"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
