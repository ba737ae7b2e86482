from __future__ import annotations

import pytest

from cascade_merge.models.cascade import CascadeOptions
from cascade_merge.models.webhook import MergeEvent

from fakes import make_event


@pytest.fixture
def options() -> CascadeOptions:
    return CascadeOptions(development_name="devel", release_prefix="release/")


@pytest.fixture
def event() -> MergeEvent:
    return make_event()
