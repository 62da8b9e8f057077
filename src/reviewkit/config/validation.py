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

"""Helpers for validating and coercing loosely typed configuration values."""

from __future__ import annotations

from collections.abc import Iterable
from typing import cast


def coerce_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def coerce_float(value: object, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return float(int(value))
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def require_non_negative_int(value: object, *, context: str) -> int:
    result = coerce_int(value, default=-1)
    if result < 0:
        message = f"{context} must be a non-negative integer (got {value!r})"
        raise ValueError(message)
    return result


def require_non_negative_float(value: object, *, context: str) -> float:
    result = coerce_float(value, default=-1.0)
    if result < 0:
        message = f"{context} must be a non-negative number (got {value!r})"
        raise ValueError(message)
    return result


def ensure_list(value: object | None) -> list[str]:
    """Convert a string or iterable of strings into a list of stripped, non-empty strings.

    Args:
        value: ``None``, a single string or an iterable of items.

    Returns:
        List of non-empty strings; empty for ``None`` or unsupported inputs.
    """
    if value is None:
        return []
    if isinstance(value, str):
        stripped = value.strip()
        return [stripped] if stripped else []
    if not isinstance(value, Iterable):
        return []
    result: list[str] = []
    for item in cast("Iterable[object]", value):
        text = str(item).strip() if item is not None else ""
        if text:
            result.append(text)
    return result


def dedupe_preserve(values: Iterable[str]) -> list[str]:
    """Return ``values`` without duplicates, keeping first occurrences in order."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def normalise_extension(value: str) -> str:
    """Return ``value`` as a lower-case extension with a leading dot."""
    stripped = value.strip().lower()
    if not stripped:
        return ""
    return stripped if stripped.startswith(".") else f".{stripped}"
