"""MeshWarp playground: subdivided grid editing, masking, and displacement view."""

__version__ = "0.1.0"
