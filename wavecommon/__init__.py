"""Shared building blocks for services: errors, retries, tokens, configuration,
logging, database helpers, messaging, Consul and Redis clients."""

__version__ = "0.1.0"