"""Service network builder: one service network per Gateway."""

import logging

from kubelattice.core.models import Gateway, VpcAssociationPolicy
from kubelattice.k8s import annotations
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.model import ServiceNetwork, ServiceNetworkSpec, Stack
from kubelattice.lattice.policy import PolicyResolver
from kubelattice.utils.config import ControllerConfig

logger = logging.getLogger(__name__)


class ServiceNetworkBuilder:
    def __init__(self, reader: ClusterReader, config: ControllerConfig, policy_resolver: PolicyResolver | None = None):
        self.reader = reader
        self.config = config
        self.policy_resolver = policy_resolver or PolicyResolver(reader)

    async def build(self, gateway: Gateway) -> tuple[Stack, ServiceNetwork]:
        """
        Build the service network of a gateway.

        VPC association defaults to true unless the lattice-vpc-association
        annotation says otherwise. An attached VpcAssociationPolicy wins over
        the annotation. When a default service network is configured only
        that network is associated with the cluster VPC.
        """
        stack = Stack(gateway.namespaced_name())
        spec = ServiceNetworkSpec(
            name=gateway.name,
            account=self.config.account_id,
            additional_tags=annotations.additional_tags(gateway.annotations),
        )

        if annotations.VPC_ASSOCIATION in gateway.annotations:
            spec.associate_to_vpc = annotations.parse_bool(gateway.annotations[annotations.VPC_ASSOCIATION])

        policy = await self.policy_resolver.get_attached_policy(VpcAssociationPolicy, gateway.namespaced_name())
        if policy is not None:
            logger.debug("Applying VpcAssociationPolicy %s to gateway %s", policy.namespaced_name(), gateway.name)
            if policy.associate_with_vpc is not None:
                spec.associate_to_vpc = policy.associate_with_vpc
            spec.security_group_ids = list(policy.security_group_ids)

        default_network = self.config.default_service_network
        if default_network and default_network != gateway.name:
            logger.debug("Gateway %s is not the default service network %s, no VPC association", gateway.name, default_network)
            spec.associate_to_vpc = False

        service_network = ServiceNetwork.new(stack, spec, is_deleted=gateway.is_deleted())
        return stack, service_network
