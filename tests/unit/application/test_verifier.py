import pytest

from otpcore.application.generators import generate_code
from otpcore.application.verifier import verify
from otpcore.domain.entities import OTPVariant

NOW = 1700000000


class TestTimeBasedVerification:
    def test_current_code_is_accepted(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        code = generate_code(descriptor, NOW).code

        result = verify(descriptor, code, at_time=NOW)

        assert result.valid
        assert result.time_window == "current"
        assert result.time_offset == 0
        assert result.expected_code == code

    @pytest.mark.parametrize("offset, window", [(-30, "previous"), (30, "next")])
    def test_adjacent_windows(self, make_descriptor, offset, window) -> None:
        descriptor = make_descriptor()
        code = generate_code(descriptor, NOW + offset).code

        result = verify(descriptor, code, at_time=NOW)

        assert result.valid
        assert result.time_window == window
        assert result.time_offset == offset

    def test_outside_window_is_rejected_with_expected_code(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        stale = generate_code(descriptor, NOW - 90).code
        current = generate_code(descriptor, NOW).code

        result = verify(descriptor, stale, at_time=NOW)

        if stale != current:
            assert not result.valid
            assert result.time_window == "none"
            assert result.expected_code == current

    def test_wider_window(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        code = generate_code(descriptor, NOW - 60).code
        assert verify(descriptor, code, window_size=2, at_time=NOW).valid

    def test_zero_window_only_accepts_current(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        previous = generate_code(descriptor, NOW - 30).code
        current = generate_code(descriptor, NOW).code
        if previous != current:
            assert not verify(descriptor, previous, window_size=0, at_time=NOW).valid

    def test_negative_window_is_rejected(self, make_descriptor) -> None:
        with pytest.raises(ValueError):
            verify(make_descriptor(), "123456", window_size=-1, at_time=NOW)

    def test_whitespace_in_candidate_is_ignored(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        code = generate_code(descriptor, NOW).code
        result = verify(descriptor, f" {code[:3]} {code[3:]} ", at_time=NOW)
        assert result.valid
        assert result.provided_code == code

    def test_steam_is_case_insensitive(self, make_descriptor) -> None:
        descriptor = make_descriptor(variant=OTPVariant.STEAM)
        code = generate_code(descriptor, NOW).code
        assert verify(descriptor, code.lower(), at_time=NOW).valid

    def test_times_before_epoch_are_skipped(self, make_descriptor) -> None:
        descriptor = make_descriptor()
        code = generate_code(descriptor, 10).code
        result = verify(descriptor, code, at_time=10)
        assert result.valid
        assert result.time_window == "current"


class TestCounterVerification:
    def test_current_counter_only(self, make_descriptor) -> None:
        descriptor = make_descriptor(variant=OTPVariant.HOTP, counter=0)

        assert verify(descriptor, "755224").valid
        result = verify(descriptor, "287082")

        assert not result.valid
        assert result.expected_code == "755224"
        assert result.counter == 0
        assert result.time_window is None

    def test_result_dict(self, make_descriptor) -> None:
        payload = verify(make_descriptor(variant=OTPVariant.HOTP), "000000").to_dict()
        assert payload == {
            "valid": False,
            "providedCode": "000000",
            "expectedCode": "755224",
            "counter": 0,
        }
