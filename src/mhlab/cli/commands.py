"""CLI command registration and handlers for merge-hash-lab."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from mhlab.contracts.error import BadInputError, Exit, IOErrorEnvelope
from mhlab.contracts.schema import validate_dump
from mhlab.core.hashtable import HashTable
from mhlab.core.mergesort import ParallelMergeSorter, fork_depth
from mhlab.core.scheduler import TaskScheduler

DEMO_SEQUENCE = (4, 3, 9, 1)
DEMO_TABLE_KEYS = 17


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_table: Callable[[], HashTable[Any, Any]]
    build_scheduler: Callable[[], TaskScheduler]
    logger: logging.Logger
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "sort",
        "Sort values with the fork/join merge sort.",
        lambda parser: _configure_sort(parser, ctx),
    )
    _register(
        "table",
        "Insert key=value pairs into a fresh hash table and print its buckets.",
        lambda parser: _configure_table(parser, ctx),
    )
    _register(
        "demo",
        "Sort [4, 3, 9, 1] and fill a default table past its first resize.",
        lambda parser: _configure_demo(parser, ctx),
    )
    return handlers


def _parse_number(token: str) -> int | float:
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise BadInputError(f"Not a number: {token!r}", hint="drop --numeric to sort as text") from None


def _read_tokens(path: str) -> List[str]:
    try:
        return Path(path).read_text(encoding="utf-8").split()
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as exc:
        raise IOErrorEnvelope(f"Cannot read {path}: {exc}") from exc


def _run_sort(ctx: CLIContext, values: List[Any]) -> List[Any]:
    scheduler = ctx.build_scheduler()
    try:
        ParallelMergeSorter(scheduler).sort(values)
    finally:
        scheduler.shutdown()
    return values


def _configure_sort(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("values", nargs="*", help="Values to sort")
    parser.add_argument("--from-file", default=None, help="Read whitespace-separated values from a file")
    parser.add_argument("--numeric", action="store_true", help="Compare values as numbers")

    def handler(args: argparse.Namespace) -> int:
        tokens = list(args.values)
        if args.from_file:
            tokens.extend(_read_tokens(args.from_file))
        values: List[Any] = [_parse_number(tok) for tok in tokens] if args.numeric else tokens
        original = list(values)
        ctx.logger.info("Sorting %d values (fork depth=%d)", len(values), fork_depth(len(values)))
        _run_sort(ctx, values)
        data = {"input": original, "sorted": values, "count": len(values)}
        ctx.emit_success("sort", text=" ".join(str(v) for v in values), data=data)
        return int(Exit.OK)

    return handler


def _parse_pair(token: str) -> tuple[str, str]:
    key, sep, value = token.partition("=")
    if not sep or not key:
        raise BadInputError(f"Expected key=value, got {token!r}")
    return key, value


def _fill_table(table: HashTable[Any, Any], pairs: List[tuple[str, str]]) -> List[str]:
    replaced: List[str] = []
    for key, value in pairs:
        if table.put(key, value) is not None:
            replaced.append(key)
    return replaced


def _configure_table(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("pairs", nargs="*", help="key=value pairs, inserted in order")

    def handler(args: argparse.Namespace) -> int:
        pairs = [_parse_pair(tok) for tok in args.pairs]
        table = ctx.build_table()
        replaced = _fill_table(table, pairs)
        payload = table.to_dict()
        validate_dump(payload)
        ctx.logger.info(
            "Table holds %d keys in %d buckets (resizes=%d)",
            len(table),
            table.capacity,
            table.resize_count,
        )
        data = dict(payload)
        data["replaced"] = replaced
        ctx.emit_success("table", text=table.format_table(), data=data)
        return int(Exit.OK)

    return handler


def _configure_demo(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    del parser

    def handler(args: argparse.Namespace) -> int:
        del args
        values = _run_sort(ctx, list(DEMO_SEQUENCE))
        table = ctx.build_table()
        _fill_table(table, [(f"key{i}", str(i)) for i in range(DEMO_TABLE_KEYS)])
        text = "\n".join(
            [
                f"sort {list(DEMO_SEQUENCE)} -> {values}",
                f"table size={len(table)} capacity={table.capacity} resizes={table.resize_count}",
                table.format_table(),
            ]
        )
        data = {"sorted": values, "table": table.to_dict()}
        ctx.emit_success("demo", text=text, data=data)
        return int(Exit.OK)

    return handler


__all__ = ["CLIContext", "register_subcommands"]
