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

"""Property-based tests for tag and severity normalisation."""

from __future__ import annotations

import pytest
from hypothesis import given

from reviewkit.core.model_types import SeverityLevel
from reviewkit.core.types import normalise_tags
from tests.property_based.strategies import arbitrary_noise, tag_lists

pytestmark = pytest.mark.property


@given(tag_lists())
def test_normalised_tags_are_sorted_unique_and_stable(tags: list[str]) -> None:
    result = normalise_tags(tags)
    assert list(result) == sorted(set(result))
    assert all(tag == tag.strip().lower() and tag for tag in result)
    assert normalise_tags(result) == result
    assert set(result) == {tag.strip().lower() for tag in tags}


@given(arbitrary_noise())
def test_severity_coerce_never_raises(noise: object) -> None:
    assert isinstance(SeverityLevel.coerce(noise), SeverityLevel)
