"""
Tests for the composite key codec.
"""

import pytest

from tokenledger.core.composite_key import (
    MAX_UNICODE_RUNE,
    is_composite_key,
    make_composite_key,
    partial_key_range,
    split_composite_key,
    validate_simple_key,
)
from tokenledger.core.ledger_exceptions import DecodeError, ValidationError


class TestMakeCompositeKey:
    def test_layout(self):
        key = make_composite_key("insurance", ["alice", "bob"])
        assert key == "\x00insurance\x00alice\x00bob\x00"

    def test_no_parts(self):
        assert make_composite_key("insurance", []) == "\x00insurance\x00"

    def test_empty_namespace_rejected(self):
        with pytest.raises(ValidationError):
            make_composite_key("", ["alice"])

    @pytest.mark.parametrize("bad", ["a\x00b", "z\U0010ffff"])
    def test_reserved_code_points_rejected_in_parts(self, bad):
        with pytest.raises(ValidationError) as exc_info:
            make_composite_key("insurance", ["alice", bad])
        assert exc_info.value.details["field"] == "part[1]"

    def test_reserved_code_point_rejected_in_namespace(self):
        with pytest.raises(ValidationError):
            make_composite_key("ins\x00urance", ["alice"])

    def test_non_string_part_rejected(self):
        with pytest.raises(ValidationError):
            make_composite_key("insurance", ["alice", 5])


class TestSplitCompositeKey:
    def test_inverse_of_make(self):
        key = make_composite_key("insurance", ["alice", "bob"])
        assert split_composite_key(key) == ("insurance", ["alice", "bob"])

    def test_empty_component_survives(self):
        key = make_composite_key("ns", ["", "x"])
        assert split_composite_key(key) == ("ns", ["", "x"])

    @pytest.mark.parametrize("key", ["alice", "", "\x00", "\x00ns", "ns\x00"])
    def test_malformed_keys_rejected(self, key):
        with pytest.raises(DecodeError):
            split_composite_key(key)


class TestPartialKeyRange:
    def test_range_bounds(self):
        start, end = partial_key_range("insurance", ["alice"])
        assert start == "\x00insurance\x00alice\x00"
        assert end == start + MAX_UNICODE_RUNE

    def test_range_covers_children_only(self):
        start, end = partial_key_range("insurance", ["alice"])
        inside = make_composite_key("insurance", ["alice", "zed"])
        sibling = make_composite_key("insurance", ["alicea", "bob"])
        assert start <= inside < end
        assert not (start <= sibling < end)


class TestSimpleKeys:
    def test_is_composite_key(self):
        assert is_composite_key(make_composite_key("ns", ["a"]))
        assert not is_composite_key("alice")

    def test_plain_key_accepted(self):
        validate_simple_key("alice")

    @pytest.mark.parametrize("key", ["", "\x00alice", None])
    def test_invalid_simple_keys(self, key):
        with pytest.raises(ValidationError):
            validate_simple_key(key)
