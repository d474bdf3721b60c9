"""nebula-desktop: local supervisor for a NebulaGraph container stack."""
