"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass

import structlog

from detached import Entity, schema_for


# Types
@dataclass(frozen=True, slots=True, kw_only=True)
class User(Entity):
    first_name: str = ""
    last_name: str = ""


users = schema_for(User)


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def show(label: str, rows: list[User]) -> None:
    print(f"  {label}:")
    for row in rows:
        print(f"    {row.id}: {row.first_name} {row.last_name}")


def run(main: Callable[[], Coroutine[object, object, None]], *, verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))
    asyncio.run(main())
