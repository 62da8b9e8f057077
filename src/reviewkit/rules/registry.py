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

"""Rule discovery and identifier resolution.

Rules are referenced by identifier: the class name of a builtin or
entry-point rule (``LineLengthRule``), or an importable ``module:Class`` /
``module.Class`` path. Plugins register classes under the
``reviewkit.rules`` entry point group.
"""

from __future__ import annotations

import difflib
import importlib
import inspect
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib import metadata
from typing import TYPE_CHECKING, Final, Literal, cast

from reviewkit._internal.exceptions import ReviewkitError, ReviewkitTypeError
from reviewkit._internal.logging_utils import structured_extra
from reviewkit.core.model_types import LogComponent
from reviewkit.core.type_aliases import RuleId

from .base import describe_rule_class
from .builtin import BareExceptRule, LineLengthRule

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from reviewkit.core.types import RuleDescriptor

    from .base import Rule

logger: logging.Logger = logging.getLogger("reviewkit.rules.registry")

ENTRY_POINT_GROUP: Final = "reviewkit.rules"


class RuleNotFoundError(ReviewkitError, LookupError):
    """Raised when a rule identifier cannot be resolved to a class."""

    def __init__(self, identifier: str, *, reason: str, suggestions: Iterable[str] = ()) -> None:
        self.identifier = identifier
        self.reason = reason
        self.suggestions = tuple(suggestions)
        super().__init__(f"Unknown rule '{identifier}': {reason}")


class RuleInstantiationError(ReviewkitTypeError):
    """Raised when a resolved rule class cannot be constructed without arguments."""

    def __init__(self, identifier: str, error: Exception) -> None:
        self.identifier = identifier
        self.error = error
        super().__init__(f"Rule '{identifier}' could not be instantiated: {error}")


@lru_cache
def builtin_rules() -> dict[RuleId, type]:
    """Return the rules bundled with reviewkit keyed by identifier."""
    classes: list[type] = [LineLengthRule, BareExceptRule]
    return {RuleId(cls.__name__): cls for cls in classes}


@lru_cache
def entrypoint_rules() -> dict[RuleId, type]:
    """Discover rule classes registered under the ``reviewkit.rules`` entry point group.

    Entry points that fail to load, or that do not provide a class, are logged
    and skipped.

    Returns:
        Mapping of identifiers to rule classes, sorted by identifier.
    """
    rules: dict[RuleId, type] = {}
    for entry_point in metadata.entry_points().select(group=ENTRY_POINT_GROUP):
        try:
            loaded = entry_point.load()
        except Exception as exc:  # pragma: no cover - plugin misconfiguration
            logger.warning(
                "Failed to load rule entry point '%s': %s",
                entry_point.name,
                exc,
                extra=structured_extra(component=LogComponent.REGISTRY, rule=entry_point.name),
            )
            continue
        if not inspect.isclass(loaded):
            logger.warning(
                "Rule entry point '%s' did not provide a class",
                entry_point.name,
                extra=structured_extra(component=LogComponent.REGISTRY, rule=entry_point.name),
            )
            continue
        rules[RuleId(entry_point.name)] = loaded
    return dict(sorted(rules.items()))


def rule_map() -> dict[RuleId, type]:
    """Return builtin and plugin rules; plugins may shadow builtins of the same name."""
    mapping = dict(builtin_rules())
    mapping.update(entrypoint_rules())
    return mapping


def _split_identifier(identifier: str) -> tuple[str, str] | None:
    if ":" in identifier:
        module_name, _, attr = identifier.partition(":")
    elif "." in identifier:
        module_name, _, attr = identifier.rpartition(".")
    else:
        return None
    if not module_name or not attr:
        return None
    return module_name, attr


def _suggest(identifier: str, known: Iterable[str]) -> list[str]:
    tail = identifier.replace(":", ".").rsplit(".", 1)[-1]
    return difflib.get_close_matches(tail, list(known), n=3, cutoff=0.6)


def resolve_rule_class(identifier: str) -> type:
    """Resolve a rule identifier to its class.

    Args:
        identifier: Registered class name, ``module:Class`` or ``module.Class``.

    Returns:
        The resolved class.

    Raises:
        RuleNotFoundError: If the identifier names no importable class.
    """
    name = identifier.strip()
    mapping = rule_map()
    if not name:
        raise RuleNotFoundError(identifier, reason="empty identifier")
    registered = mapping.get(RuleId(name))
    if registered is not None:
        return registered
    parts = _split_identifier(name)
    if parts is None:
        raise RuleNotFoundError(
            identifier,
            reason="not a registered rule and not an importable 'module:Class' path",
            suggestions=_suggest(name, mapping),
        )
    module_name, attr = parts
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:  # noqa: BLE001
        raise RuleNotFoundError(
            identifier,
            reason=f"module '{module_name}' could not be imported ({type(exc).__name__}: {exc})",
            suggestions=_suggest(name, mapping),
        ) from exc
    resolved = getattr(module, attr, None)
    if resolved is None:
        raise RuleNotFoundError(
            identifier,
            reason=f"module '{module_name}' has no attribute '{attr}'",
            suggestions=_suggest(name, mapping),
        )
    if not inspect.isclass(resolved):
        raise RuleNotFoundError(identifier, reason=f"'{attr}' is not a class")
    return cast("type", resolved)


def instantiate_rule(rule_class: type, *, identifier: str | None = None) -> Rule:
    """Construct ``rule_class`` without arguments.

    Raises:
        RuleInstantiationError: If construction fails.
    """
    factory = cast("Callable[[], Rule]", rule_class)
    try:
        return factory()
    except Exception as exc:
        raise RuleInstantiationError(identifier or rule_class.__name__, exc) from exc


@dataclass(slots=True, frozen=True)
class RuleRegistration:
    """Metadata describing an available rule and where it came from."""

    descriptor: RuleDescriptor
    origin: Literal["builtin", "plugin"]
    module: str


def describe_rules() -> list[RuleRegistration]:
    """Describe every available rule, builtin rules first."""
    builtin = builtin_rules()
    registrations: list[RuleRegistration] = []
    for identifier, rule_class in rule_map().items():
        try:
            descriptor = describe_rule_class(rule_class, identifier)
        except ValueError as exc:
            logger.warning(
                "Skipping rule '%s' with invalid metadata: %s",
                identifier,
                exc,
                extra=structured_extra(component=LogComponent.REGISTRY, rule=identifier),
            )
            continue
        origin: Literal["builtin", "plugin"] = "builtin" if builtin.get(identifier) is rule_class else "plugin"
        registrations.append(RuleRegistration(descriptor=descriptor, origin=origin, module=rule_class.__module__))
    registrations.sort(key=lambda item: (item.origin != "builtin", item.descriptor.identifier))
    return registrations


__all__ = [
    "ENTRY_POINT_GROUP",
    "RuleInstantiationError",
    "RuleNotFoundError",
    "RuleRegistration",
    "builtin_rules",
    "describe_rules",
    "entrypoint_rules",
    "instantiate_rule",
    "resolve_rule_class",
    "rule_map",
]
