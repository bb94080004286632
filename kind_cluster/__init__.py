"""Provision and tear down ephemeral kind Kubernetes clusters."""

__version__ = "0.1.0"
