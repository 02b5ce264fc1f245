"""Plugin implementations: agent connectors and registries."""
