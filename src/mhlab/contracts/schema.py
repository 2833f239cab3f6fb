"""Bundled JSON schema for hash table dump payloads."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from .error import InvariantError

DUMP_SCHEMA = "table_dump.v1"
_SCHEMA_RESOURCE = "table_dump.schema.json"


def load_dump_schema() -> dict[str, Any]:
    schema_resource = resources.files("mhlab.contracts") / _SCHEMA_RESOURCE
    with schema_resource.open(encoding="utf-8") as stream:
        return json.load(stream)


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    return Draft202012Validator(load_dump_schema())


def validate_dump(payload: Mapping[str, Any]) -> None:
    """Raise :class:`InvariantError` when ``payload`` breaks the dump contract."""

    errors = sorted(_validator().iter_errors(payload), key=lambda err: list(err.path))
    if errors:
        details = "; ".join(f"{err.message} @ {list(err.path)}" for err in errors)
        raise InvariantError(f"Dump payload violates {DUMP_SCHEMA}: {details}")
    capacity = payload["capacity"]
    indices = [bucket["index"] for bucket in payload["buckets"]]
    if indices != list(range(capacity)):
        raise InvariantError("Dump buckets must list every index in ascending order")
    stored = sum(len(bucket["chain"]) for bucket in payload["buckets"])
    if stored != payload["size"]:
        raise InvariantError(f"Dump size {payload['size']} does not match {stored} chained entries")


__all__ = ["DUMP_SCHEMA", "load_dump_schema", "validate_dump"]
