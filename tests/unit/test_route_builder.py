"""Unit tests for the route model build: service, listeners, rules, target groups and targets."""

import asyncio

import pytest

from kubelattice.core.models import InvalidServiceNameOverrideError, NamespacedName, NotFoundError, ValidationError
from kubelattice.core.models.errors import (
    LATTICE_EXCEED_MAX_HEADER_MATCHES,
    LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES,
    LATTICE_TLS_PASSTHROUGH_SINGLE_RULE,
    LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME,
    LATTICE_UNSUPPORTED_MATCH_TYPE,
    LATTICE_UNSUPPORTED_PATH_MATCH_TYPE,
)
from kubelattice.deploy import TargetGroupReferenceStore
from kubelattice.k8s.converter import ManifestConverter
from kubelattice.lattice.builders import LatticeServiceBuilder, resolve_standalone
from kubelattice.lattice.model import (
    INVALID_BACKEND_REF_TG_ID,
    Listener,
    Rule,
    Service,
    TargetGroup,
    Targets,
)
from kubelattice.lattice.model.naming import target_group_name
from kubelattice.lattice.model.stack import to_jsonable
from kubelattice.utils.config import ControllerConfig
from tests.conftest import (
    backend,
    http_listener,
    https_listener,
    make_endpoint_slice,
    make_gateway,
    make_namespace,
    make_policy,
    make_route,
    make_service,
    tls_passthrough_listener,
)

STANDALONE = "application-networking.k8s.aws/standalone"


def to_route(manifest):
    return ManifestConverter().convert_route(manifest)


def build(reader, config, manifest):
    return asyncio.run(LatticeServiceBuilder(reader, config).build(to_route(manifest)))


def headers(count):
    return [{"name": f"x-h{i}", "value": str(i)} for i in range(count)]


class TestEndToEnd:
    """Test the single-route, single-backend build."""

    def test_http_route(self, client, reader, config):
        """svc1/ns1 -> gw1 HTTP:80 -> tg1 weight 10."""
        client.add(make_service())
        client.add(make_endpoint_slice(addresses=("10.0.0.1", "10.0.0.2")))

        stack, service = build(reader, config, make_route())

        assert service.spec.route_name == "svc1"
        assert service.spec.service_network_names == ["gw1"]
        assert service.is_deleted is False

        target_groups = stack.list_resources(TargetGroup)
        assert len(target_groups) == 1
        target_group = target_groups[0]
        assert target_group.spec.name == target_group_name(
            "tg1", "ns1", "svc1", "ns1", False, port=80, protocol="HTTP", protocol_version="HTTP1"
        )
        assert target_group.spec.vpc_id == "vpc-123"
        assert target_group.spec.protocol == "HTTP"
        assert target_group.spec.protocol_version == "HTTP1"

        listeners = stack.list_resources(Listener)
        assert [(l.spec.port, l.spec.protocol) for l in listeners] == [(80, "HTTP")]
        assert listeners[0].spec.default_action.fixed_response_status_code == 404

        rules = stack.list_resources(Rule)
        assert len(rules) == 1
        rule = rules[0].spec
        assert rule.path_match_prefix is True
        assert rule.path_match_value == "/"
        assert [(tg.stack_target_group_id, tg.weight) for tg in rule.action.target_groups] == [
            (target_group.id, 10)
        ]

        targets = stack.list_resources(Targets)
        assert len(targets) == 1
        assert [(t.target_ip, t.port) for t in targets[0].spec.target_list] == [
            ("10.0.0.1", 8080),
            ("10.0.0.2", 8080),
        ]

    def test_dependency_order(self, client, reader, config):
        """Dependees come before dependers in traversal."""
        client.add(make_service())

        stack, _ = build(reader, config, make_route())
        kinds = [type(resource) for resource in stack.ordered_resources()]

        assert kinds.index(Service) < kinds.index(Listener) < kinds.index(Rule)
        assert kinds.index(TargetGroup) < kinds.index(Targets)
        assert kinds.index(TargetGroup) < kinds.index(Rule)

    def test_determinism(self, client, reader, config):
        """Two builds of the same state produce identical ids and specs."""
        client.add(make_service())
        client.add(make_endpoint_slice())

        first, _ = build(reader, config, make_route())
        second, _ = build(reader, config, make_route())

        assert [r.uid() for r in first.resources()] == [r.uid() for r in second.resources()]
        assert [to_jsonable(r.spec) for r in first.resources()] == [to_jsonable(r.spec) for r in second.resources()]

    def test_weight_defaults_to_one(self, client, reader, config):
        client.add(make_service())

        stack, _ = build(reader, config, make_route(rules=[{"backendRefs": [backend("tg1")]}]))

        assert stack.list_resources(Rule)[0].spec.action.target_groups[0].weight == 1


class TestDeletion:
    """Test building a route that is being deleted."""

    def test_deleted_route_still_builds(self, client, reader, config):
        """Service and target groups are present and marked deleted."""
        client.add(make_service())
        client.add(make_endpoint_slice())

        stack, service = build(reader, config, make_route(deleted=True))

        assert len(stack) > 0
        assert service.is_deleted is True
        target_groups = stack.list_resources(TargetGroup)
        assert len(target_groups) == 1
        assert target_groups[0].is_deleted is True
        assert stack.list_resources(Listener) == []
        assert stack.list_resources(Rule) == []
        assert stack.list_resources(Targets) == []

    def test_missing_backend_does_not_block_deletion(self, client, reader, config):
        stack, service = build(reader, config, make_route(deleted=True))

        assert service.is_deleted is True
        assert stack.list_resources(TargetGroup)[0].spec.k8s_service_name == "tg1"

    def test_missing_gateway_does_not_block_deletion(self, client, reader, config):
        manifest = make_route(parent_refs=[{"name": "gone"}], deleted=True)

        _, service = build(reader, config, manifest)

        assert service.is_deleted is True
        assert service.spec.service_network_names == []


class TestRuleMatches:
    """Test match translation."""

    def test_header_bound(self, client, reader, config):
        """Five header matches build, six do not."""
        client.add(make_service())
        ok_rules = [{"matches": [{"headers": headers(5)}], "backendRefs": [backend("tg1")]}]

        stack, _ = build(reader, config, make_route(rules=ok_rules))

        assert len(stack.list_resources(Rule)[0].spec.matched_headers) == 5

        bad_rules = [{"matches": [{"headers": headers(6)}], "backendRefs": [backend("tg1")]}]
        with pytest.raises(ValidationError) as exc_info:
            build(reader, config, make_route(rules=bad_rules))
        assert exc_info.value.reason == LATTICE_EXCEED_MAX_HEADER_MATCHES

    def test_exact_path_and_method(self, client, reader, config):
        client.add(make_service())
        rules = [
            {
                "matches": [{"path": {"type": "Exact", "value": "/cart"}, "method": "GET"}],
                "backendRefs": [backend("tg1")],
            }
        ]

        stack, _ = build(reader, config, make_route(rules=rules))
        rule = stack.list_resources(Rule)[0].spec

        assert rule.path_match_exact is True
        assert rule.path_match_prefix is False
        assert rule.path_match_value == "/cart"
        assert rule.method == "GET"

    def test_one_rule_per_route_rule(self, client, reader, config):
        client.add(make_service())
        rules = [
            {"matches": [{"path": {"value": "/a"}}], "backendRefs": [backend("tg1")]},
            {"matches": [{"path": {"value": "/b"}}], "backendRefs": [backend("tg1")]},
        ]

        stack, _ = build(reader, config, make_route(rules=rules))

        assert [r.spec.path_match_value for r in stack.list_resources(Rule)] == ["/a", "/b"]
        assert len(stack.list_resources(TargetGroup)) == 1

    @pytest.mark.parametrize(
        "match,reason",
        [
            ({"path": {"type": "RegularExpression", "value": "/.*"}}, LATTICE_UNSUPPORTED_PATH_MATCH_TYPE),
            ({"queryParams": [{"name": "q", "value": "1"}]}, LATTICE_UNSUPPORTED_MATCH_TYPE),
        ],
    )
    def test_unsupported_matches(self, client, reader, config, match, reason):
        client.add(make_service())
        rules = [{"matches": [match], "backendRefs": [backend("tg1")]}]

        with pytest.raises(ValidationError) as exc_info:
            build(reader, config, make_route(rules=rules))

        assert exc_info.value.reason == reason

    def test_multiple_matches_fail(self, client, reader, config):
        client.add(make_service())
        rules = [{"matches": [{"method": "GET"}, {"method": "POST"}], "backendRefs": [backend("tg1")]}]

        with pytest.raises(ValidationError) as exc_info:
            build(reader, config, make_route(rules=rules))

        assert exc_info.value.reason == LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES


class TestGRPCRoute:
    """Test GRPCRoute translation."""

    @pytest.fixture(autouse=True)
    def https_gateway(self, client):
        client.add(make_gateway(listeners=[https_listener()]))
        client.add(make_service())

    @pytest.mark.parametrize(
        "method,exact,path",
        [
            ({"service": "helloworld.Greeter", "method": "SayHello"}, True, "/helloworld.Greeter/SayHello"),
            ({"service": "helloworld.Greeter"}, False, "/helloworld.Greeter/"),
            ({}, False, "/"),
        ],
    )
    def test_method_matches(self, reader, config, method, exact, path):
        rules = [{"matches": [{"method": method}], "backendRefs": [backend("tg1")]}]

        stack, _ = build(reader, config, make_route(kind="GRPCRoute", rules=rules))
        rule = stack.list_resources(Rule)[0].spec

        assert rule.method == "POST"
        assert rule.path_match_exact is exact
        assert rule.path_match_value == path
        assert stack.list_resources(TargetGroup)[0].spec.protocol_version == "GRPC"

    def test_method_without_service_fails(self, reader, config):
        rules = [{"matches": [{"method": {"method": "SayHello"}}], "backendRefs": [backend("tg1")]}]

        with pytest.raises(ValidationError):
            build(reader, config, make_route(kind="GRPCRoute", rules=rules))

    def test_no_matches_is_post_prefix(self, reader, config):
        stack, _ = build(reader, config, make_route(kind="GRPCRoute", rules=[{"backendRefs": [backend("tg1")]}]))
        rule = stack.list_resources(Rule)[0].spec

        assert (rule.method, rule.path_match_prefix, rule.path_match_value) == ("POST", True, "/")


class TestTLSPassthrough:
    """Test TLS passthrough listeners."""

    @pytest.fixture(autouse=True)
    def tls_gateway(self, client):
        client.add(make_gateway(listeners=[tls_passthrough_listener()]))
        client.add(make_service(ports=[{"port": 443}]))

    def test_single_rule(self, reader, config):
        """The only rule becomes the listener's forward action."""
        manifest = make_route(
            kind="TLSRoute", hostnames=["tls.example.com"], rules=[{"backendRefs": [backend("tg1", port=443)]}]
        )

        stack, service = build(reader, config, manifest)

        listener = stack.list_resources(Listener)[0]
        target_group = stack.list_resources(TargetGroup)[0]
        assert listener.spec.protocol == "TLS_PASSTHROUGH"
        assert listener.spec.default_action.fixed_response_status_code is None
        assert listener.spec.default_action.forward.target_groups[0].stack_target_group_id == target_group.id
        assert stack.list_resources(Rule) == []
        assert target_group.spec.protocol == "TCP"
        assert target_group.spec.protocol_version is None
        assert service.spec.customer_domain_name == "tls.example.com"

    def test_two_rules_fail(self, reader, config):
        rules = [{"backendRefs": [backend("tg1", port=443)]}, {"backendRefs": [backend("tg1", port=443)]}]
        manifest = make_route(kind="TLSRoute", hostnames=["tls.example.com"], rules=rules)

        with pytest.raises(ValidationError) as exc_info:
            build(reader, config, manifest)

        assert exc_info.value.reason == LATTICE_TLS_PASSTHROUGH_SINGLE_RULE

    def test_hostname_required(self, reader, config):
        with pytest.raises(ValidationError) as exc_info:
            build(reader, config, make_route(kind="TLSRoute"))

        assert exc_info.value.reason == LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME


class TestBackendRefs:
    """Test per-backend-reference failure isolation."""

    def test_partial_backend_failure(self, client, reader, config):
        """A missing Service becomes the invalid placeholder with its weight."""
        client.add(make_service())
        rules = [{"backendRefs": [backend("tg1", weight=10), backend("missing", weight=5)]}]

        stack, _ = build(reader, config, make_route(rules=rules))

        target_groups = stack.list_resources(TargetGroup)
        assert len(target_groups) == 1
        action = stack.list_resources(Rule)[0].spec.action
        assert [(tg.stack_target_group_id, tg.weight) for tg in action.target_groups] == [
            (target_groups[0].id, 10),
            (INVALID_BACKEND_REF_TG_ID, 5),
        ]

    def test_dual_stack_service_is_invalid_backend(self, client, reader, config):
        client.add(make_service(ip_families=["IPv4", "IPv6"]))

        stack, _ = build(reader, config, make_route())

        assert stack.list_resources(TargetGroup) == []
        assert stack.list_resources(Rule)[0].spec.action.target_groups[0].is_invalid_backend_ref()

    def test_unsupported_kind_is_invalid_backend(self, client, reader, config):
        rules = [{"backendRefs": [{"name": "bucket", "kind": "S3Bucket", "weight": 3}]}]

        stack, _ = build(reader, config, make_route(rules=rules))

        [target] = stack.list_resources(Rule)[0].spec.action.target_groups
        assert (target.stack_target_group_id, target.weight) == (INVALID_BACKEND_REF_TG_ID, 3)

    def test_ipv6_service(self, client, reader, config):
        client.add(make_service(ip_families=["IPv6"]))

        stack, _ = build(reader, config, make_route())

        assert stack.list_resources(TargetGroup)[0].spec.ip_address_type == "IPV6"

    def test_service_import(self, client, reader, config):
        """ServiceImport groups take vpc and cluster from annotations and have no targets."""
        client.add(
            {
                "apiVersion": "multicluster.x-k8s.io/v1alpha1",
                "kind": "ServiceImport",
                "metadata": {
                    "name": "remote",
                    "namespace": "ns1",
                    "annotations": {
                        "application-networking.k8s.aws/aws-vpc": "vpc-remote",
                        "application-networking.k8s.aws/aws-eks-cluster-name": "remote-cluster",
                    },
                },
            }
        )
        rules = [{"backendRefs": [{"name": "remote", "kind": "ServiceImport", "group": "multicluster.x-k8s.io"}]}]

        stack, _ = build(reader, config, make_route(rules=rules))

        spec = stack.list_resources(TargetGroup)[0].spec
        assert spec.is_service_import is True
        assert spec.vpc_id == "vpc-remote"
        assert spec.eks_cluster_name == "remote-cluster"
        assert stack.list_resources(Targets) == []

    def test_target_group_policy(self, client, reader, config):
        """An attached TargetGroupPolicy sets protocol and health check."""
        client.add(make_service())
        client.add(
            make_policy(
                "TargetGroupPolicy",
                "tgp",
                target_ref={"group": "", "kind": "Service", "name": "tg1"},
                spec={"protocol": "HTTPS", "protocolVersion": "HTTP2", "healthCheck": {"path": "/healthz"}},
            )
        )

        stack, _ = build(reader, config, make_route())
        spec = stack.list_resources(TargetGroup)[0].spec

        assert spec.protocol == "HTTPS"
        assert spec.protocol_version == "HTTP2"
        assert spec.health_check.path == "/healthz"

    def test_ports_get_distinct_target_groups(self, client, reader, config):
        """One service referenced on two ports yields two uniquely named groups."""
        client.add(make_service(ports=[{"name": "http", "port": 80}, {"name": "alt", "port": 8080}]))
        rules = [
            {"matches": [{"path": {"type": "PathPrefix", "value": "/a"}}], "backendRefs": [backend("tg1", port=80)]},
            {"matches": [{"path": {"type": "PathPrefix", "value": "/b"}}], "backendRefs": [backend("tg1", port=8080)]},
        ]

        stack, _ = build(reader, config, make_route(rules=rules))

        target_groups = stack.list_resources(TargetGroup)
        assert sorted(tg.spec.port for tg in target_groups) == [80, 8080]
        names = {tg.spec.name for tg in target_groups}
        assert len(names) == 2

        store = TargetGroupReferenceStore()
        store.record_stack(stack)
        for name in names:
            assert store.routes(name) == {NamespacedName("ns1", "svc1")}

    def test_policy_protocol_renames_target_group(self, client, reader, config):
        """A protocol change from a TargetGroupPolicy produces a new group name."""
        client.add(make_service())
        stack, _ = build(reader, config, make_route())
        before = stack.list_resources(TargetGroup)[0].spec.name

        client.add(
            make_policy(
                "TargetGroupPolicy",
                "tgp",
                target_ref={"group": "", "kind": "Service", "name": "tg1"},
                spec={"protocol": "HTTPS"},
            )
        )
        stack, _ = build(reader, config, make_route())
        after = stack.list_resources(TargetGroup)[0].spec.name

        assert after != before
        assert after.startswith("k8s-ns1-tg1-")


class TestListeners:
    """Test listener selection against gateway listener sections."""

    def test_section_name_filter(self, client, reader, config):
        client.add(make_gateway(listeners=[http_listener("http-80", 80), http_listener("http-8080", 8080)]))
        client.add(make_service())

        stack, _ = build(reader, config, make_route(parent_refs=[{"name": "gw1", "sectionName": "http-8080"}]))

        assert [l.spec.port for l in stack.list_resources(Listener)] == [8080]

    def test_every_matching_section(self, client, reader, config):
        client.add(make_gateway(listeners=[http_listener("http-80", 80), http_listener("http-8080", 8080)]))
        client.add(make_service())

        stack, _ = build(reader, config, make_route())

        assert [l.spec.port for l in stack.list_resources(Listener)] == [80, 8080]
        assert len(stack.list_resources(Rule)) == 2

    def test_rejected_parent_ref_is_skipped(self, client, reader, config):
        client.add(make_service())

        stack, service = build(reader, config, make_route(accepted=False))

        assert stack.list_resources(Listener) == []
        assert service.spec.service_network_names == []

    def test_http_listener_rejects_grpc_route(self, client, reader, config):
        client.add(make_service())

        stack, _ = build(reader, config, make_route(kind="GRPCRoute"))

        assert stack.list_resources(Listener) == []

    def test_other_namespace_needs_allowed_routes(self, client, reader, config):
        client.add(make_service(namespace="ns2"))
        manifest = make_route(namespace="ns2", parent_refs=[{"name": "gw1", "namespace": "ns1"}])

        stack, _ = build(reader, config, manifest)
        assert stack.list_resources(Listener) == []

        client.add(make_gateway(listeners=[http_listener(allowedRoutes={"namespaces": {"from": "All"}})]))
        stack, _ = build(reader, config, manifest)
        assert len(stack.list_resources(Listener)) == 1

    def test_namespace_selector(self, client, reader, config):
        selector = {"namespaces": {"from": "Selector", "selector": {"matchLabels": {"team": "shop"}}}}
        client.add(make_gateway(listeners=[http_listener(allowedRoutes=selector)]))
        client.add(make_service(namespace="ns2"))
        client.add(make_namespace("ns2", labels={"team": "shop"}))
        manifest = make_route(namespace="ns2", parent_refs=[{"name": "gw1", "namespace": "ns1"}])

        stack, _ = build(reader, config, manifest)
        assert len(stack.list_resources(Listener)) == 1

        client.add(make_namespace("ns2", labels={"team": "other"}))
        stack, _ = build(reader, config, manifest)
        assert stack.list_resources(Listener) == []

    def test_uncontrolled_gateway(self, client, reader, config):
        """A route whose only gateway belongs to another controller has no controlled parent."""
        client.add(make_gateway(gateway_class="other-class"))
        client.add(make_service())

        with pytest.raises(NotFoundError):
            build(reader, config, make_route())


class TestServiceSpec:
    """Test the lattice service spec."""

    def test_missing_gateway_is_not_found(self, reader, config):
        with pytest.raises(NotFoundError):
            build(reader, config, make_route(parent_refs=[{"name": "gone"}]))

    def test_certificate_arn_from_https_listener(self, client, reader, config):
        client.add(make_gateway(listeners=[https_listener(certificate_arn="arn:aws:acm:us-west-2:1:certificate/x")]))
        client.add(make_service())

        _, service = build(reader, config, make_route(hostnames=["shop.example.com"]))

        assert service.spec.customer_cert_arn == "arn:aws:acm:us-west-2:1:certificate/x"
        assert service.spec.customer_domain_name == "shop.example.com"

    def test_name_override(self, client, reader, config):
        client.add(make_service())
        manifest = make_route(annotations={"application-networking.k8s.aws/service-name-override": "shop"})

        stack, service = build(reader, config, manifest)

        assert service.id == "shop"
        assert stack.list_resources(Listener)[0].spec.stack_service_id == "shop"

    def test_gateway_service_name(self, client, reader, config):
        client.add(make_gateway(annotations={"application-networking.k8s.aws/lattice-service-name": "from-gw"}))

        _, service = build(reader, config, make_route())

        assert service.id == "from-gw"

    def test_invalid_name_override(self, client, reader, config):
        manifest = make_route(annotations={"application-networking.k8s.aws/service-name-override": "svc-bad"})

        with pytest.raises(InvalidServiceNameOverrideError):
            build(reader, config, manifest)

    def test_tags_and_takeover(self, client, reader, config):
        manifest = make_route(
            annotations={
                "application-networking.k8s.aws/tags": "env=prod,application-networking.k8s.aws/x=y",
                "application-networking.k8s.aws/allow-takeover-from": "111122223333/old/vpc-old",
            }
        )

        _, service = build(reader, config, manifest)

        assert service.spec.additional_tags == {"env": "prod"}
        assert service.spec.allow_takeover_from == "111122223333/old/vpc-old"
        assert service.spec.to_tags()["application-networking.k8s.aws/RouteType"] == "http"

    def test_service_network_override(self, client, reader):
        config = ControllerConfig(
            vpc_id="vpc-123", default_service_network="default-sn", enable_service_network_override=True
        )

        _, service = build(reader, config, make_route())

        assert service.spec.service_network_names == ["default-sn"]


class TestStandalone:
    """Test standalone precedence."""

    @pytest.mark.parametrize(
        "route_value,gateway_value,expected",
        [
            (None, None, False),
            (None, "true", True),
            ("false", "true", False),
            ("true", None, True),
            ("true", "false", True),
            (None, "false", False),
        ],
    )
    def test_precedence(self, client, reader, config, route_value, gateway_value, expected):
        """Route annotation wins, then any controlled gateway, then false."""
        if gateway_value is not None:
            client.add(make_gateway(annotations={STANDALONE: gateway_value}))
        route_annotations = {STANDALONE: route_value} if route_value is not None else None
        route = to_route(make_route(annotations=route_annotations))

        assert asyncio.run(resolve_standalone(reader, route, config.controller_name)) is expected

    def test_standalone_service_has_no_networks(self, client, reader, config):
        _, service = build(reader, config, make_route(annotations={STANDALONE: "true"}))

        assert service.spec.service_network_names == []

    def test_gateway_lookup_failure(self, reader, config):
        route = to_route(make_route(parent_refs=[{"name": "gone"}]))

        with pytest.raises(NotFoundError):
            asyncio.run(resolve_standalone(reader, route, config.controller_name))

    def test_gateway_lookup_failure_during_deletion(self, reader, config):
        route = to_route(make_route(parent_refs=[{"name": "gone"}], deleted=True))

        assert asyncio.run(resolve_standalone(reader, route, config.controller_name)) is False
