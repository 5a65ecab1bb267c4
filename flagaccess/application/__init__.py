"""Application layer: read models, ports, policy and use cases."""
