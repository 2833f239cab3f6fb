from __future__ import annotations

from pathlib import Path

import pytest

from mhlab.config import AppConfig, load_app_config
from mhlab.contracts.error import BadInputError


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.sort.scheduler == "threads"
    assert cfg.sort.max_workers is None
    assert cfg.table.initial_capacity == 16


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text(
        """
[sort]
scheduler = "inline"
max_workers = 3

[table]
initial_capacity = 64
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    assert cfg.sort.scheduler == "inline"
    assert cfg.sort.max_workers == 3
    assert cfg.table.initial_capacity == 64

    # env override takes precedence
    monkeypatch.setenv("MHLAB_SORT_SCHEDULER", "THREADS")
    monkeypatch.setenv("MHLAB_SORT_MAX_WORKERS", "8")
    monkeypatch.setenv("MHLAB_TABLE_INITIAL_CAPACITY", "32")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.sort.scheduler == "threads"
    assert cfg_env.sort.max_workers == 8
    assert cfg_env.table.initial_capacity == 32


@pytest.mark.parametrize(
    "body",
    [
        "[table]\ninitial_capacity = 12\n",
        "[table]\ninitial_capacity = 0\n",
        "[sort]\nscheduler = \"processes\"\n",
        "[sort]\nmax_workers = 0\n",
        "[sort]\nmax_workers = \"4\"\n",
        "[sort]\nmax_workers = 2.5\n",
        "[sort]\nmax_workers = true\n",
        "[sort]\nscheduler = 1\n",
        "[table]\ninitial_capacity = \"16\"\n",
        "[table]\ninitial_capacity = true\n",
        "[sort]\nunknown = 1\n",
        "sort = 5\n",
        "[sort\n",
    ],
)
def test_invalid_values_raise(tmp_path: Path, body: str) -> None:
    bad_path = tmp_path / "bad.toml"
    bad_path.write_text(body, encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(bad_path))


def test_missing_file_is_bad_input(tmp_path: Path) -> None:
    with pytest.raises(BadInputError, match="not found"):
        load_app_config(str(tmp_path / "absent.toml"))


def test_invalid_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MHLAB_SORT_MAX_WORKERS", "many")
    with pytest.raises(BadInputError, match="MHLAB_SORT_MAX_WORKERS"):
        load_app_config(None)
