import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import


@pytest.fixture(autouse=True)
def _clear_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer shells from leaking config overrides into tests."""

    for name in (
        "MHLAB_CONFIG",
        "MHLAB_SORT_SCHEDULER",
        "MHLAB_SORT_MAX_WORKERS",
        "MHLAB_TABLE_INITIAL_CAPACITY",
    ):
        monkeypatch.delenv(name, raising=False)


def pytest_configure(config: pytest.Config) -> None:
    """Ensure custom marks remain registered even when pyproject isn't picked up."""
    config.addinivalue_line("markers", "slow: larger inputs exercising deep fork trees")
