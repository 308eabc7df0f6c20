"""Kubernetes access for kubelattice."""

from kubelattice.k8s.converter import ManifestConverter
from kubelattice.k8s.reader import ClusterReader

__all__ = ["ClusterReader", "ManifestConverter"]
