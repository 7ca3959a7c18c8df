"""Infrastructure adapters: helm CLI, Kubernetes connection, manifest diffing."""
