"""IAM auth policy value attached to a lattice service or service network."""

from dataclasses import dataclass

SERVICE_NETWORK_TYPE = "ServiceNetwork"
SERVICE_TYPE = "Service"


@dataclass
class IAMAuthPolicy:
    type: str
    name: str
    policy: str
    resource_id: str = ""  # lattice id, resolved at synthesis
