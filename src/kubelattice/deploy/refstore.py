"""Records which routes and exports reference each target group."""

import threading
from dataclasses import dataclass, field

from kubelattice.core.models import NamespacedName
from kubelattice.lattice.model import Stack, TargetGroup


@dataclass
class TargetGroupReferences:
    routes: set[NamespacedName] = field(default_factory=set)
    service_export: bool = False

    def is_empty(self) -> bool:
        return not self.routes and not self.service_export


class TargetGroupReferenceStore:
    """
    Per target group name "referenced-by" record, shared across reconcilers.

    A target group is orphaned once no route backend ref and no service
    export references it, at which point synthesis may delete it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._references: dict[str, TargetGroupReferences] = {}

    def add_route(self, tg_name: str, route: NamespacedName) -> None:
        with self._lock:
            self._references.setdefault(tg_name, TargetGroupReferences()).routes.add(route)

    def remove_route(self, tg_name: str, route: NamespacedName) -> None:
        with self._lock:
            references = self._references.get(tg_name)
            if references is None:
                return
            references.routes.discard(route)
            if references.is_empty():
                del self._references[tg_name]

    def set_service_export(self, tg_name: str, exported: bool) -> None:
        with self._lock:
            if exported:
                self._references.setdefault(tg_name, TargetGroupReferences()).service_export = True
                return
            references = self._references.get(tg_name)
            if references is None:
                return
            references.service_export = False
            if references.is_empty():
                del self._references[tg_name]

    def routes(self, tg_name: str) -> set[NamespacedName]:
        with self._lock:
            references = self._references.get(tg_name)
            return set(references.routes) if references else set()

    def is_orphaned(self, tg_name: str) -> bool:
        with self._lock:
            return tg_name not in self._references

    def record_stack(self, stack: Stack) -> None:
        """Update references from every target group in a built stack."""
        for target_group in stack.list_resources(TargetGroup):
            spec = target_group.spec
            if spec.is_service_export:
                self.set_service_export(spec.name, not target_group.is_deleted)
            elif spec.is_route:
                route = NamespacedName(spec.k8s_route_namespace, spec.k8s_route_name)
                if target_group.is_deleted:
                    self.remove_route(spec.name, route)
                else:
                    self.add_route(spec.name, route)
