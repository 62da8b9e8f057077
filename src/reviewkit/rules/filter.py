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

"""Metadata queries over rule descriptors.

`RuleFilter` is an immutable set of criteria; each ``by_*`` method returns a
new filter with one more criterion, and `RuleFilter.apply` selects the
matching descriptors. Grouping helpers and `rule_statistics` summarise a
selection for the ``rules`` CLI command.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from reviewkit.core.model_types import RuleCategory, SeverityLevel
from reviewkit.core.types import normalise_tags

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from reviewkit.core.types import RuleDescriptor
    from reviewkit.json import JSONValue

HIGH_PRIORITY: Final[tuple[int, int]] = (1, 3)
MEDIUM_PRIORITY: Final[tuple[int, int]] = (4, 6)
LOW_PRIORITY: Final[tuple[int, int]] = (7, 10)


@dataclass(slots=True, frozen=True)
class RuleFilter:
    """Criteria for selecting rules by metadata.

    Every criterion left unset matches all rules. Tag criteria match when the
    rule carries any of ``tags_any`` and all of ``tags_all``.
    """

    categories: frozenset[RuleCategory] | None = None
    severities: frozenset[SeverityLevel] | None = None
    tags_any: tuple[str, ...] = ()
    tags_all: tuple[str, ...] = ()
    enabled: bool | None = None
    authors: frozenset[str] | None = None
    identifier_pattern: re.Pattern[str] | None = None
    min_priority: int = 1
    max_priority: int = 10

    def by_category(self, *categories: RuleCategory | str) -> RuleFilter:
        parsed = frozenset(
            category if isinstance(category, RuleCategory) else RuleCategory.from_str(category)
            for category in categories
        )
        return replace(self, categories=parsed)

    def by_severity(self, *severities: SeverityLevel | str) -> RuleFilter:
        parsed = frozenset(
            severity if isinstance(severity, SeverityLevel) else SeverityLevel.from_str(severity)
            for severity in severities
        )
        return replace(self, severities=parsed)

    def by_tags(self, *tags: str, match_all: bool = False) -> RuleFilter:
        cleaned = normalise_tags(tags)
        return replace(self, tags_all=cleaned) if match_all else replace(self, tags_any=cleaned)

    def by_enabled(self, enabled: bool = True) -> RuleFilter:
        return replace(self, enabled=enabled)

    def by_author(self, *authors: str) -> RuleFilter:
        return replace(self, authors=frozenset(author.strip().lower() for author in authors))

    def by_identifier(self, pattern: str) -> RuleFilter:
        """Match identifiers against a regular expression (searched, case-insensitive)."""
        return replace(self, identifier_pattern=re.compile(pattern, re.IGNORECASE))

    def by_priority(self, min_priority: int = 1, max_priority: int = 10) -> RuleFilter:
        if min_priority > max_priority:
            msg = f"min_priority ({min_priority}) exceeds max_priority ({max_priority})"
            raise ValueError(msg)
        return replace(self, min_priority=min_priority, max_priority=max_priority)

    def matches(self, descriptor: RuleDescriptor) -> bool:  # noqa: PLR0911
        if self.categories is not None and descriptor.category not in self.categories:
            return False
        if self.severities is not None and descriptor.severity not in self.severities:
            return False
        if self.tags_any and not set(self.tags_any) & set(descriptor.tags):
            return False
        if self.tags_all and not set(self.tags_all) <= set(descriptor.tags):
            return False
        if self.enabled is not None and descriptor.enabled is not self.enabled:
            return False
        if self.authors is not None and descriptor.author.lower() not in self.authors:
            return False
        if self.identifier_pattern is not None and not self.identifier_pattern.search(descriptor.identifier):
            return False
        return self.min_priority <= descriptor.priority <= self.max_priority

    def apply(self, descriptors: Iterable[RuleDescriptor]) -> list[RuleDescriptor]:
        """Return the matching descriptors ordered by priority, then identifier."""
        selected = [descriptor for descriptor in descriptors if self.matches(descriptor)]
        return sorted(selected, key=lambda descriptor: (descriptor.priority, descriptor.identifier))


def group_by_category(descriptors: Iterable[RuleDescriptor]) -> dict[RuleCategory, list[RuleDescriptor]]:
    grouped: dict[RuleCategory, list[RuleDescriptor]] = {}
    for descriptor in sorted(descriptors, key=lambda item: (item.priority, item.identifier)):
        grouped.setdefault(descriptor.category, []).append(descriptor)
    return grouped


def group_by_severity(descriptors: Iterable[RuleDescriptor]) -> dict[SeverityLevel, list[RuleDescriptor]]:
    order = list(SeverityLevel)
    grouped: dict[SeverityLevel, list[RuleDescriptor]] = {}
    for descriptor in sorted(descriptors, key=lambda item: (order.index(item.severity), item.identifier)):
        grouped.setdefault(descriptor.severity, []).append(descriptor)
    return grouped


def group_by_priority(descriptors: Iterable[RuleDescriptor]) -> dict[str, list[RuleDescriptor]]:
    """Split descriptors into ``high`` (1-3), ``medium`` (4-6) and ``low`` (7-10) priority bands."""
    bands: Mapping[str, tuple[int, int]] = {"high": HIGH_PRIORITY, "medium": MEDIUM_PRIORITY, "low": LOW_PRIORITY}
    items = list(descriptors)
    return {
        band: RuleFilter().by_priority(low, high).apply(items)
        for band, (low, high) in bands.items()
    }


def rule_statistics(descriptors: Iterable[RuleDescriptor]) -> dict[str, JSONValue]:
    """Count rules by category, severity, tag and author."""
    items = list(descriptors)
    categories = Counter(descriptor.category.value for descriptor in items)
    severities = Counter(descriptor.severity.value for descriptor in items)
    tags = Counter(tag for descriptor in items for tag in descriptor.tags)
    authors = Counter(descriptor.author for descriptor in items)
    return {
        "total_rules": len(items),
        "enabled_rules": sum(1 for descriptor in items if descriptor.enabled),
        "categories": dict(sorted(categories.items())),
        "severities": dict(sorted(severities.items())),
        "tags": dict(sorted(tags.items())),
        "authors": dict(sorted(authors.items())),
    }


__all__ = [
    "RuleFilter",
    "group_by_category",
    "group_by_priority",
    "group_by_severity",
    "rule_statistics",
]
