"""Tests for the Ok/Err result values."""

import pytest

from src.grounding.errors import PersistenceAbsent
from src.grounding.result import Err, Ok


def test_ok_unwraps_value() -> None:
    result = Ok([0.5, 0.25])
    assert result.is_ok()
    assert not result.is_err()
    assert result.unwrap() == [0.5, 0.25]


def test_err_unwrap_raises_with_message() -> None:
    result = Err("backend unavailable")
    assert result.is_err()
    assert not result.is_ok()
    with pytest.raises(ValueError, match="backend unavailable"):
        result.unwrap()


def test_err_with_absent_store_marker(tmp_path) -> None:  # type: ignore[no-untyped-def]
    result = Err(PersistenceAbsent(tmp_path / "missing.bin"))
    assert result.error.path == tmp_path / "missing.bin"
    with pytest.raises(ValueError, match="Store file not found"):
        result.unwrap()
