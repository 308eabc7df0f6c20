"""VPC Lattice model building."""
