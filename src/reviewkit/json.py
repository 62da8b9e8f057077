# Copyright 2025 CrownOps Engineering
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Canonical JSON types and helpers used across reviewkit.

This module defines the JSON value shapes and the conversions used when run
reports, cache payloads and log records are serialised. It has no
dependencies on logging, configuration or CLI layers.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import PurePath
from typing import cast

from pydantic import JsonValue

__all__ = [
    "JSONList",
    "JSONMapping",
    "JSONValue",
    "as_float",
    "as_list",
    "as_mapping",
    "as_str",
    "dumps",
    "normalize_enums_for_json",
]

type JSONValue = JsonValue
type JSONMapping = dict[str, JsonValue]
type JSONList = list[JsonValue]


def as_mapping(value: object) -> JSONMapping:
    """Return `value` as a JSON mapping if it is a dict, else an empty mapping.

    Args:
        value: Arbitrary value to convert.

    Returns:
        A `dict` when `value` is already a mapping, otherwise an empty mapping.
    """
    return cast("JSONMapping", value) if isinstance(value, dict) else {}


def as_list(value: object) -> JSONList:
    """Return `value` as a JSON list if it is a list, else an empty list."""
    return cast("JSONList", value) if isinstance(value, list) else []


def as_str(value: object, default: str = "") -> str:
    """Return `value` if it is already a string, else `default`."""
    if isinstance(value, str):
        return value
    return default


def as_float(value: object, default: float = 0.0) -> float:
    """Return `value` as a float when it is numeric, else `default`.

    Booleans are rejected even though they are `int` subclasses.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        return float(value)
    return default


def normalize_enums_for_json(value: object) -> JSONValue:
    """Recursively convert a Python structure into JSON-compatible values.

    Enum keys and values become their `.value` payloads, datetimes become ISO
    strings, paths become POSIX strings and tuples/sets become lists (sets are
    sorted for stable output).

    Args:
        value: Arbitrary Python object hierarchy.

    Returns:
        A JSON-compatible structure built from `dict`/`list`/primitives.
    """

    def _key(key: object) -> str:
        if isinstance(key, Enum):
            return str(key.value)
        if isinstance(key, PurePath):
            return key.as_posix()
        return key if isinstance(key, str) else str(key)

    def _convert(obj: object) -> JSONValue:
        if isinstance(obj, Enum):
            return cast("JSONValue", obj.value)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, PurePath):
            return obj.as_posix()
        if isinstance(obj, dict):
            mapping_obj = cast("dict[object, object]", obj)
            return {_key(key): _convert(raw_val) for key, raw_val in mapping_obj.items()}
        if isinstance(obj, list | tuple):
            items = cast("list[object] | tuple[object, ...]", obj)
            return [_convert(item) for item in items]
        if isinstance(obj, set | frozenset):
            members = cast("set[object] | frozenset[object]", obj)
            return [_convert(item) for item in sorted(members, key=str)]
        if isinstance(obj, str | int | float | bool) or obj is None:
            return cast("JSONValue", obj)
        return str(obj)

    return _convert(value)


def dumps(value: object) -> str:
    """Serialise `value` to indented JSON with a trailing newline."""
    return json.dumps(normalize_enums_for_json(value), indent=2, ensure_ascii=False) + "\n"
