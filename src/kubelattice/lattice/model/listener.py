"""Lattice listener resource."""

from dataclasses import dataclass

from kubelattice.core.models.errors import LATTICE_INVALID_LISTENER, ValidationError
from kubelattice.lattice.model.rule import RuleAction
from kubelattice.lattice.model.stack import Resource, ResourceKind, Stack, id_from_hash

PROTOCOL_HTTP = "HTTP"
PROTOCOL_HTTPS = "HTTPS"
PROTOCOL_TLS_PASSTHROUGH = "TLS_PASSTHROUGH"

VALID_LISTENER_PROTOCOLS = frozenset({PROTOCOL_HTTP, PROTOCOL_HTTPS, PROTOCOL_TLS_PASSTHROUGH})

DEFAULT_FIXED_RESPONSE_STATUS_CODE = 404


@dataclass
class DefaultAction:
    """Exactly one of a fixed response or a forward."""

    fixed_response_status_code: int | None = None
    forward: RuleAction | None = None


@dataclass
class ListenerSpec:
    stack_service_id: str
    k8s_route_name: str
    k8s_route_namespace: str
    port: int
    protocol: str
    default_action: DefaultAction

    def validate(self) -> None:
        if self.protocol not in VALID_LISTENER_PROTOCOLS:
            raise ValidationError(LATTICE_INVALID_LISTENER, f"invalid listener protocol {self.protocol}")
        is_fixed_response = self.default_action.fixed_response_status_code is not None
        is_forward = self.default_action.forward is not None
        if is_fixed_response == is_forward:
            raise ValidationError(
                LATTICE_INVALID_LISTENER, "listener default action must be either fixed response or forward"
            )
        if self.protocol == PROTOCOL_TLS_PASSTHROUGH and not is_forward:
            raise ValidationError(LATTICE_INVALID_LISTENER, "TLS_PASSTHROUGH listener default action must be forward")
        if self.protocol != PROTOCOL_TLS_PASSTHROUGH and not is_fixed_response:
            raise ValidationError(
                LATTICE_INVALID_LISTENER, "non TLS_PASSTHROUGH listener default action must be fixed response"
            )

    def is_tls_passthrough(self) -> bool:
        return self.protocol == PROTOCOL_TLS_PASSTHROUGH


@dataclass
class Listener(Resource):
    kind = ResourceKind.LISTENER

    spec: ListenerSpec

    @classmethod
    def new(cls, stack: Stack, spec: ListenerSpec) -> "Listener":
        spec.validate()
        listener = cls(stack=stack, id=id_from_hash(spec), spec=spec)
        stack.add_resource(listener)
        return listener
