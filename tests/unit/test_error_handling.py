"""Tests for error handling across components."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from kind_cluster.config import ControllerSettings
from kind_cluster.exceptions import (
    ClusterReadError,
    ConfigurationError,
    CredentialStoreError,
    DeleteTimeoutError,
    DeletionError,
    KindClusterError,
    PortOutOfRangeError,
    ProvisioningError,
    StateError,
    TomlNormalizationError,
    UpdateNotSupportedError,
    ValidationError,
)
from kind_cluster.logging_config import get_logger, setup_logging


def test_custom_exception_with_details():
    """Test that custom exceptions support message and details."""
    error = ProvisioningError("Error creating Kind cluster", "Could not create cluster dev")

    assert error.message == "Error creating Kind cluster"
    assert error.details == "Could not create cluster dev"
    assert "Error creating Kind cluster" in str(error)
    assert "Details: Could not create cluster dev" in str(error)


def test_custom_exception_without_details():
    """Test that custom exceptions work without details."""
    error = ValidationError("Invalid input")

    assert error.message == "Invalid input"
    assert error.details is None
    assert str(error) == "Invalid input"


def test_exception_hierarchy():
    """Test that all custom exceptions inherit from KindClusterError."""
    for error_type in (
        ValidationError,
        ConfigurationError,
        TomlNormalizationError,
        ProvisioningError,
        ClusterReadError,
        DeletionError,
        CredentialStoreError,
        UpdateNotSupportedError,
        StateError,
    ):
        assert issubclass(error_type, KindClusterError)

    assert issubclass(PortOutOfRangeError, ValidationError)
    assert issubclass(DeleteTimeoutError, DeletionError)


def test_port_out_of_range_names_field_and_value():
    error = PortOutOfRangeError("host_port", 2147483648)

    assert error.field == "host_port"
    assert error.value == 2147483648
    assert "host_port value 2147483648" in str(error)
    assert "-2147483648" in str(error)
    assert "2147483647" in str(error)


def test_with_context_prefixes_message():
    error = PortOutOfRangeError("container_port", -2147483649)

    returned = error.with_context("failed to flatten port mapping configuration")

    assert returned is error
    assert error.message.startswith("failed to flatten port mapping configuration: container_port")
    assert str(error) == error.message


def test_with_context_keeps_details():
    error = TomlNormalizationError("failed to parse TOML", "line 1")
    error.with_context("containerd_config_patches[0]")

    assert "containerd_config_patches[0]: failed to parse TOML" in str(error)
    assert "Details: line 1" in str(error)


def test_timeout_distinguishable_from_engine_failure():
    timeout = DeleteTimeoutError("Error deleting Kind cluster", "timed out")
    failure = DeletionError("Error deleting Kind cluster", "engine failure")

    assert isinstance(timeout, DeletionError)
    assert not isinstance(failure, DeleteTimeoutError)


def test_settings_reject_invalid_values():
    with pytest.raises(PydanticValidationError):
        ControllerSettings(max_retries=-1)
    with pytest.raises(PydanticValidationError):
        ControllerSettings(delete_timeout=0)
    with pytest.raises(PydanticValidationError):
        ControllerSettings(default_node_image="")


def test_settings_round_trip_through_yaml(tmp_path):
    path = tmp_path / "settings.yml"
    ControllerSettings(max_retries=5, retry_delay=1.5).save(str(path))

    loaded = ControllerSettings.load(str(path))

    assert loaded.max_retries == 5
    assert loaded.retry_delay == 1.5
    assert loaded.delete_timeout == 300.0


def test_logging_setup(restore_logging):
    """Test that logging can be configured."""
    setup_logging(level="INFO", verbose=False)

    logger = get_logger("test")
    assert logger is not None
    assert logger.name == "test"


def test_logging_with_log_file(tmp_path, restore_logging):
    log_file = tmp_path / "logs" / "kind.log"
    setup_logging(verbose=True, log_file=log_file)

    get_logger("test").debug("This is a debug message")

    assert log_file.exists()
