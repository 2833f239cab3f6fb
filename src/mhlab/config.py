"""Typed configuration loader for merge-hash-lab."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.hashtable import DEFAULT_CAPACITY
from .core.scheduler import SCHEDULER_KINDS


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class SortPolicy:
    scheduler: str = "threads"
    max_workers: int | None = None

    def validate(self) -> None:
        if not isinstance(self.scheduler, str) or self.scheduler not in SCHEDULER_KINDS:
            raise BadInputError(f"sort.scheduler must be one of {', '.join(SCHEDULER_KINDS)}")
        if self.max_workers is None:
            return
        if not _is_int(self.max_workers):
            raise BadInputError(
                f"sort.max_workers must be an integer, got {type(self.max_workers).__name__}"
            )
        if self.max_workers <= 0:
            raise BadInputError("sort.max_workers must be > 0 when set")


@dataclass
class TablePolicy:
    initial_capacity: int = DEFAULT_CAPACITY

    def validate(self) -> None:
        value = self.initial_capacity
        if not _is_int(value):
            raise BadInputError(
                f"table.initial_capacity must be an integer, got {type(value).__name__}"
            )
        if value <= 0 or (value & (value - 1)) != 0:
            raise BadInputError("table.initial_capacity must be a power of two > 0")


@dataclass
class AppConfig:
    sort: SortPolicy = field(default_factory=SortPolicy)
    table: TablePolicy = field(default_factory=TablePolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        sort_data = data.get("sort", {})
        if not isinstance(sort_data, dict):
            raise BadInputError("[sort] section must be a table")
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise BadInputError("[table] section must be a table")
        try:
            sort = SortPolicy(**sort_data)
            table = TablePolicy(**table_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown config key: {exc}") from exc
        return cls(sort=sort, table=table)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        mapping: dict[str, tuple[object, str, Callable[[str], Any]]] = {
            "MHLAB_SORT_SCHEDULER": (self.sort, "scheduler", lambda raw: raw.strip().lower()),
            "MHLAB_SORT_MAX_WORKERS": (self.sort, "max_workers", int),
            "MHLAB_TABLE_INITIAL_CAPACITY": (self.table, "initial_capacity", int),
        }
        for key, (target, attr, caster) in mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(target, attr, value)

    def validate(self) -> None:
        self.sort.validate()
        self.table.validate()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
