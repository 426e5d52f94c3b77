"""Shared pytest fixtures for Modular UI tests."""

from pathlib import Path

import pytest

import mu_logger
from mu_sys import set_env_mapping
from mu_registry import CONTROL_REGISTRY

CONTROLS = Path(__file__).parent / "controls"


@pytest.fixture(autouse=True)
def env(tmp_path):
    """Isolated ENV: fail log in tmp, fast insertion polling."""
    mapping = {
        "MU_FAIL_LOG": str(tmp_path / "fail.log"),
        "MU_POLL_INTERVAL_MS": "5",
        "MU_POLL_LIMIT": "5",
        "MU_CONTROLS_PATH": str(CONTROLS),
    }
    set_env_mapping(mapping)
    yield mapping
    set_env_mapping(None)


@pytest.fixture(autouse=True)
def registry():
    """Every test starts with only the built-in TControl registered."""
    CONTROL_REGISTRY.reset()
    yield CONTROL_REGISTRY
    CONTROL_REGISTRY.reset()


@pytest.fixture
def log_lines():
    """Return a callable giving the log lines written during the test."""
    router = mu_logger.init_log_router()
    router.clear()
    return lambda: router.lines(1)


@pytest.fixture
def controls_dir() -> Path:
    return CONTROLS


@pytest.fixture
def top():
    """A root container mounted into the body of a fresh document."""
    from mu_application import TTopLevelContainer

    return TTopLevelContainer(path=str(CONTROLS))


@pytest.fixture
def warned(log_lines):
    """warned("BindingConflict") → была ли строка лога с этим видом ошибки."""
    return lambda kind: any(f"⚠️ {kind}" in line for line in log_lines())
