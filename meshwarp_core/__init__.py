"""Command line tooling for MeshWarp."""
