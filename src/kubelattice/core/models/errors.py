"""Errors raised while building and deploying lattice models."""

LATTICE_RETRY = "LATTICE_RETRY"

LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES = "LATTICE_NO_SUPPORT_FOR_MULTIPLE_MATCHES"
LATTICE_EXCEED_MAX_HEADER_MATCHES = "LATTICE_EXCEED_MAX_HEADER_MATCHES"
LATTICE_UNSUPPORTED_MATCH_TYPE = "LATTICE_UNSUPPORTED_MATCH_TYPE"
LATTICE_UNSUPPORTED_HEADER_MATCH_TYPE = "LATTICE_UNSUPPORTED_HEADER_MATCH_TYPE"
LATTICE_UNSUPPORTED_PATH_MATCH_TYPE = "LATTICE_UNSUPPORTED_PATH_MATCH_TYPE"
LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME = "LATTICE_TLS_ROUTE_REQUIRES_HOSTNAME"
LATTICE_TLS_PASSTHROUGH_SINGLE_RULE = "LATTICE_TLS_PASSTHROUGH_SINGLE_RULE"
LATTICE_UNSUPPORTED_IP_FAMILY = "LATTICE_UNSUPPORTED_IP_FAMILY"
LATTICE_INVALID_SERVICE_NAME = "LATTICE_INVALID_SERVICE_NAME"
LATTICE_RULE_PRIORITY_EXHAUSTED = "LATTICE_RULE_PRIORITY_EXHAUSTED"
LATTICE_INVALID_LISTENER = "LATTICE_INVALID_LISTENER"
LATTICE_INVALID_TARGET_GROUP = "LATTICE_INVALID_TARGET_GROUP"
LATTICE_INVALID_ANNOTATION = "LATTICE_INVALID_ANNOTATION"
LATTICE_UNSUPPORTED_TARGET_REF = "LATTICE_UNSUPPORTED_TARGET_REF"
LATTICE_MISSING_DESTINATION_ARN = "LATTICE_MISSING_DESTINATION_ARN"


class KubeLatticeError(Exception):
    """Base error for kubelattice."""


class ValidationError(KubeLatticeError):
    """A Kubernetes object cannot be expressed as lattice resources.

    These are not retried: the object has to change before a build can succeed.
    """

    def __init__(self, reason: str, message: str = "", field: str | None = None):
        self.reason = reason
        self.message = message or reason
        self.field = field
        super().__init__(self.message if self.message == reason else f"{reason}: {self.message}")


class InvalidServiceNameOverrideError(ValidationError):
    """The service-name-override annotation is not a valid lattice service name."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(LATTICE_INVALID_SERVICE_NAME, f"invalid service name override '{name}': {message}")


class NotFoundError(KubeLatticeError):
    """A referenced Kubernetes object does not exist (yet)."""

    def __init__(self, kind: str, namespace: str | None, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        key = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {key} not found")


class InvalidBackendRefError(KubeLatticeError):
    """A route backend reference cannot be turned into a target group."""

    def __init__(self, backend_name: str, message: str):
        self.backend_name = backend_name
        super().__init__(f"invalid backend ref {backend_name}: {message}")


class RequeueNeededAfter(KubeLatticeError):
    """
    Instructs the reconciler to try again after a delay, without surfacing an error.

    Used for conditions that are expected to resolve on their own, such as a
    dependency that has not been created yet or an eventually consistent API.
    """

    def __init__(self, reason: str, duration: float):
        self.reason = reason
        self.duration = duration
        super().__init__(f"requeue needed after {duration}s: {reason}")


class RetryError(RequeueNeededAfter):
    """Lattice API needs more time before the operation can succeed."""

    def __init__(self, duration: float = 10.0):
        super().__init__(LATTICE_RETRY, duration)
