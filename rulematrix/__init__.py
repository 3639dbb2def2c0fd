"""Rule-chain building blocks: definitions, registries, loaders, a worker pool and node contexts."""

__version__ = "0.1.0"