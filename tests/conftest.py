from __future__ import annotations

from datetime import date

import numpy as np
import pytest

from fakes import InMemoryRecordRepository

# Saturday, 18th of the month -> meal plan week 3, Day 4
FIXED_TODAY = date(2025, 10, 18)


@pytest.fixture()
def today() -> date:
    return FIXED_TODAY


@pytest.fixture()
def store() -> InMemoryRecordRepository:
    return InMemoryRecordRepository()


class OneHotEncoder:
    """Each distinct text gets its own axis, so only exact repeats score 1.0."""

    def __init__(self) -> None:
        self.vocab: dict[str, int] = {}
        self.calls = 0

    def __call__(self, texts):  # type: ignore[no-untyped-def]
        self.calls += 1
        for t in texts:
            self.vocab.setdefault(t, len(self.vocab))
        dim = 256
        out = np.zeros((len(texts), dim), dtype=np.float32)
        for row, t in enumerate(texts):
            out[row, self.vocab[t] % dim] = 1.0
        return out


@pytest.fixture()
def one_hot_encoder() -> OneHotEncoder:
    return OneHotEncoder()
