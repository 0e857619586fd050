import pytest

from lyrics3d.exceptions import Lyrics3DError, ValidationError
from lyrics3d.utils.validation import (
    clamp_index,
    validate_max_visible,
    validate_positive,
    validate_unit_interval,
)


class TestValidateMaxVisible:
    def test_valid(self):
        assert validate_max_visible(15) == 15

    @pytest.mark.parametrize("value", [0, -1, 1.5, "8", None, False])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_max_visible(value)


def test_validate_unit_interval():
    assert validate_unit_interval(0.5, "falloff") == 0.5
    with pytest.raises(ValidationError, match="falloff"):
        validate_unit_interval(1.5, "falloff")


def test_validate_positive():
    assert validate_positive(60, "update_rate") == 60
    with pytest.raises(ValidationError):
        validate_positive(0, "update_rate")


class TestClampIndex:
    def test_in_range(self):
        assert clamp_index(3, 9) == 3

    def test_clamps_both_ends(self):
        assert clamp_index(-2, 9) == 0
        assert clamp_index(12, 9) == 8

    def test_empty_sequence(self):
        assert clamp_index(5, 0) == 0


def test_validation_error_is_library_error():
    assert issubclass(ValidationError, Lyrics3DError)
