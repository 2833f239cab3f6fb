import json
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator

from mhlab.contracts.error import InvariantError
from mhlab.contracts.schema import DUMP_SCHEMA, load_dump_schema, validate_dump
from mhlab.core.hashtable import HashTable

SCHEMA_PATH = Path(__file__).resolve().parents[1] / "src/mhlab/contracts/table_dump.schema.json"


def test_bundled_schema_matches_source_file() -> None:
    assert load_dump_schema() == json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(load_dump_schema())


def test_table_payload_validates() -> None:
    table: HashTable[str, int] = HashTable()
    for i in range(20):
        table.put(f"k{i}", i)
    payload = table.to_dict()
    assert payload["schema"] == DUMP_SCHEMA
    validate_dump(payload)


def test_empty_table_payload_validates() -> None:
    validate_dump(HashTable(2).to_dict())


def test_missing_chain_rejected() -> None:
    payload = HashTable(2).to_dict()
    del payload["buckets"][0]["chain"]
    with pytest.raises(InvariantError, match="chain"):
        validate_dump(payload)


def test_size_mismatch_rejected() -> None:
    table: HashTable[str, str] = HashTable(2)
    table.put("a", "1")
    payload = table.to_dict()
    payload["size"] = 2
    with pytest.raises(InvariantError, match="size"):
        validate_dump(payload)


def test_bucket_gap_rejected() -> None:
    payload = HashTable(4).to_dict()
    payload["buckets"].pop(1)
    with pytest.raises(InvariantError, match="ascending"):
        validate_dump(payload)
