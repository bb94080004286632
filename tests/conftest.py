"""Pytest configuration and shared fixtures."""

import base64
import logging
from unittest.mock import Mock

import pytest
import yaml
from hypothesis import Verbosity, settings

from kind_cluster.config import ControllerSettings

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


def _b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


@pytest.fixture
def kubeconfig_doc():
    """Factory for kubeconfig documents holding kind-<name> entries."""

    def _doc(*names: str, current: str | None = None) -> dict:
        return {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [
                {
                    "name": f"kind-{name}",
                    "cluster": {
                        "server": f"https://127.0.0.1:{6443 + i}",
                        "certificate-authority-data": _b64(f"CA-{name}"),
                    },
                }
                for i, name in enumerate(names)
            ],
            "contexts": [
                {"name": f"kind-{name}", "context": {"cluster": f"kind-{name}", "user": f"kind-{name}"}}
                for name in names
            ],
            "users": [
                {
                    "name": f"kind-{name}",
                    "user": {
                        "client-certificate-data": _b64(f"CERT-{name}"),
                        "client-key-data": _b64(f"KEY-{name}"),
                    },
                }
                for name in names
            ],
            "current-context": current or "",
            "preferences": {},
        }

    return _doc


@pytest.fixture
def kubeconfig_text(kubeconfig_doc):
    """Kubeconfig as returned by `kind get kubeconfig --name dev`."""
    return yaml.safe_dump(kubeconfig_doc("dev", current="kind-dev"))


@pytest.fixture
def fast_settings():
    """Controller settings with no retry delay and a short delete timeout."""
    return ControllerSettings(retry_delay=0, delete_timeout=0.5)


@pytest.fixture
def provisioner(kubeconfig_text):
    """Provisioning engine double that succeeds by default."""
    mock = Mock()
    mock.get_kubeconfig.return_value = kubeconfig_text
    return mock


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by setup_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
