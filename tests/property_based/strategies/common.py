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

"""Reusable Hypothesis strategies for reviewkit property tests."""

from __future__ import annotations

from hypothesis import strategies as st


def tag_lists(max_size: int = 8) -> st.SearchStrategy[list[str]]:
    """Return a strategy that yields tag lists with mixed case and padding."""
    tag = st.from_regex(r"\s{0,2}[A-Za-z][A-Za-z0-9_-]{0,8}\s{0,2}", fullmatch=True)
    return st.lists(tag, max_size=max_size)


def file_counts(max_value: int = 12) -> st.SearchStrategy[int]:
    """Strategy that emits how many distinct files a test should create.

    Args:
        max_value: Maximum number of files.

    Returns:
        Hypothesis strategy producing integers between 1 and ``max_value``.
    """
    return st.integers(min_value=1, max_value=max_value)


def arbitrary_noise() -> st.SearchStrategy[object]:
    """Inputs that should coerce to defaults rather than raise.

    Returns:
        Hypothesis strategy emitting arbitrary noise values (str/int/None).
    """
    return st.one_of(st.text(), st.integers(), st.none())
