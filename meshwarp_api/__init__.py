"""HTTP access to MeshWarp editor sessions."""
