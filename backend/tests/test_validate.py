"""
Mutual Fund Tracking Backend — Validation Unit Tests
=====================================================

What:  Tests for check_id, check and field_errors.
How:   Pure functions; no database.

What we test:
    ✅ Identifiers 1 .. 2^32-1 parse
    ✅ Zero, negative, oversized and non-numeric identifiers are rejected
    ✅ Field errors name the offending JSON field
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from mftracking import validate
from mftracking.exceptions import InvalidIDError, ValidationError
from mftracking.schemas.mutual_fund_meta import NewMutualFundMeta, UpdateMutualFundMeta


class TestCheckID:
    """Tests for identifier parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [("1", 1), ("42", 42), ("+7", 7), ("4294967295", 4294967295)],
    )
    def test_valid_ids(self, raw, expected):
        assert validate.check_id(raw) == expected

    def test_zero_rejected(self):
        with pytest.raises(InvalidIDError) as info:
            validate.check_id("0")
        assert info.value.context["reason"] == "value cannot be zero"

    def test_negative_rejected(self):
        with pytest.raises(InvalidIDError) as info:
            validate.check_id("-5")
        assert info.value.context["reason"] == "value cannot be negative"

    def test_above_32_bit_range_rejected(self):
        with pytest.raises(InvalidIDError) as info:
            validate.check_id("4294967296")
        assert "greater than" in info.value.context["reason"]

    @pytest.mark.parametrize("raw", ["abc", "", "1.5", "1_000", " 12", "0x10"])
    def test_non_integer_rejected(self, raw):
        with pytest.raises(InvalidIDError):
            validate.check_id(raw)

    def test_message_is_fixed(self):
        """Every reason surfaces with the same client-facing message."""
        with pytest.raises(InvalidIDError, match="ID is not in its proper form"):
            validate.check_id("-1")


class TestCheck:
    """Tests for model re-validation."""

    def test_valid_model_passes(self, new_meta):
        validate.check(new_meta)

    def test_constructed_model_with_blank_field_fails(self, new_meta):
        """model_construct() skips validation; check() catches it."""
        data = new_meta.model_dump()
        data["scheme_name"] = "   "
        bad = NewMutualFundMeta.model_construct(**data)

        with pytest.raises(ValidationError) as info:
            validate.check(bad)

        assert [f.field for f in info.value.fields] == ["scheme_name"]

    def test_update_with_overlong_field_fails(self):
        bad = UpdateMutualFundMeta.model_construct(fund_house="x" * 256)
        with pytest.raises(ValidationError) as info:
            validate.check(bad)
        assert info.value.fields[0].field == "fund_house"

    def test_empty_update_passes(self):
        validate.check(UpdateMutualFundMeta())


class TestFieldErrors:
    def test_one_entry_per_missing_field(self):
        with pytest.raises(PydanticValidationError) as info:
            NewMutualFundMeta.model_validate({"fund_house": "HDFC Mutual Fund"})

        names = {f.field for f in validate.field_errors(info.value)}
        assert names == {"scheme_type", "scheme_category", "scheme_code", "scheme_name"}
