"""Tests for the timestamp + token stored-name scheme."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor

import pytest

from pyfilehub.core.storage.file.naming import TimestampTokenNamer


def test_generated_name_format():
    namer = TimestampTokenNamer(clock=lambda: 1700000000.5)
    name = namer.generate("report.pdf")
    assert re.fullmatch(r"1700000000500_[0-9a-f]{8}_report\.pdf", name)


@pytest.mark.parametrize("original", [
    "report.pdf",
    "Report.PDF",
    "my_file_v2.txt",
    "__init__.py",
    "_",
    "README",
    "name with spaces.doc",
])
def test_original_name_round_trip(original):
    namer = TimestampTokenNamer()
    assert namer.extract_original_name(namer.generate(original)) == original


def test_foreign_names_are_returned_unchanged():
    namer = TimestampTokenNamer()
    assert namer.extract_original_name("legacy.pdf") == "legacy.pdf"
    assert namer.extract_original_name("abc_12345678_x.pdf") == "abc_12345678_x.pdf"
    assert namer.extract_original_name("") == ""


def test_names_are_unique_under_concurrency():
    """Identical inputs in the same millisecond still get distinct names."""
    namer = TimestampTokenNamer(clock=lambda: 1.0)
    with ThreadPoolExecutor(max_workers=8) as pool:
        names = list(pool.map(lambda _: namer.generate("same.txt"), range(500)))
    assert len(set(names)) == len(names)


def test_longer_tokens():
    namer = TimestampTokenNamer(token_length=16)
    name = namer.generate("a_b.txt")
    assert re.fullmatch(r"\d+_[0-9a-f]{16}_a_b\.txt", name)
    assert namer.extract_original_name(name) == "a_b.txt"


@pytest.mark.parametrize("length", [4, 7, 33])
def test_token_length_bounds(length):
    with pytest.raises(ValueError):
        TimestampTokenNamer(token_length=length)
