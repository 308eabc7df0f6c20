"""Targets builder: endpoint addresses registered to one target group."""

import logging

from kubelattice.core.models import Service
from kubelattice.k8s.reader import ClusterReader
from kubelattice.lattice.model import Target, TargetGroup, Targets, TargetsSpec

logger = logging.getLogger(__name__)


def matching_port_names(service: Service, declared_ports: list[int]) -> set[str] | None:
    """
    Endpoint port names that may be registered for the declared service ports.

    None means every endpoint port qualifies: nothing was declared, the
    service has a single unnamed port, or a declared port is unnamed.
    """
    if not declared_ports:
        return None
    if len(service.ports) == 1 and not service.ports[0].name:
        return None
    names: set[str] = set()
    for port in declared_ports:
        service_port = service.find_port(port)
        if service_port is None:
            logger.debug("Port %d is not exposed by service %s", port, service.namespaced_name())
            continue
        if not service_port.name:
            return None
        names.add(service_port.name)
    return names


class TargetsBuilder:
    """Builds the Targets resource of a target group from the service's EndpointSlices."""

    def __init__(self, reader: ClusterReader):
        self.reader = reader

    async def build(self, target_group: TargetGroup, service: Service, declared_ports: list[int]) -> Targets:
        """
        Collect (ip, port) pairs for every serving endpoint of the service.

        Terminating endpoints are never registered, even when still ready.
        """
        stack = target_group.stack
        port_names = matching_port_names(service, declared_ports)
        slices = await self.reader.list_endpoint_slices(service.name, service.namespace)

        target_list: list[Target] = []
        seen: set[tuple[str, int]] = set()
        for endpoint_slice in slices:
            for port in endpoint_slice.ports:
                if port_names is not None and port.name not in port_names:
                    continue
                for endpoint in endpoint_slice.endpoints:
                    if endpoint.terminating:
                        continue
                    for address in endpoint.addresses:
                        if (address, port.port) in seen:
                            continue
                        seen.add((address, port.port))
                        target_list.append(
                            Target(
                                target_ip=address,
                                port=port.port,
                                ready=endpoint.ready is not False,
                                target_ref=endpoint.target_ref,
                            )
                        )

        logger.debug("Built %d targets for target group %s", len(target_list), target_group.spec.name)
        targets = Targets.new(stack, TargetsSpec(stack_target_group_id=target_group.id, target_list=target_list))
        stack.add_dependency(target_group, targets)
        return targets
