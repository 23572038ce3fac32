"""Property-based tests for client-side pseudo-embeddings."""

from __future__ import annotations

import numpy as np
import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings  # type: ignore  # noqa: E402
from hypothesis import strategies as st

from contracts.schema import EMBEDDING_DIM
from pipeline.embeddings import simulate_embedding

_TEXT = st.text(alphabet=st.characters(blacklist_categories=("Cs",)), max_size=200)


@settings(max_examples=100, deadline=None, database=None)
@given(text=_TEXT)
def test_embedding_deterministic_and_bounded(text: str) -> None:
    first = simulate_embedding(text)
    second = simulate_embedding(text)

    assert first.shape == (EMBEDDING_DIM,)
    assert first.dtype == np.float32
    assert np.array_equal(first, second)
    assert bool(np.all(first > -3.0)) and bool(np.all(first < 1.0))


@settings(max_examples=50, deadline=None, database=None)
@given(text=_TEXT, dim=st.integers(min_value=1, max_value=64))
def test_embedding_prefix_is_stable_across_dims(text: str, dim: int) -> None:
    """Dimension i depends only on text and i."""
    full = simulate_embedding(text, dim=64)
    assert np.array_equal(simulate_embedding(text, dim=dim), full[:dim])
