"""py-tba-registry: deterministic registry for token-bound accounts."""

__version__ = "0.1.0"
