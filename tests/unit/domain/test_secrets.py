import base64

import pytest

from otpcore.domain.exceptions import InvalidSecretEncoding, MissingSecret
from otpcore.domain.secrets import (
    ENCODING_BASE32,
    ENCODING_HEX,
    decode_base32,
    decode_hex,
    decode_secret,
    detect_encoding,
    is_base32,
    is_hex,
)


class TestDecodeBase32:
    def test_decodes_rfc_secret(self, rfc_secret, rfc_base32) -> None:
        assert decode_base32(rfc_base32) == rfc_secret

    def test_is_case_insensitive(self, rfc_secret, rfc_base32) -> None:
        assert decode_base32(rfc_base32.lower()) == rfc_secret

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("MZXW6===", b"foo"),
            ("MZXW6YQ=", b"foob"),
            ("MZXW6YTB", b"fooba"),
            ("MZXW6", b"foo"),
            ("MZXW6YQ", b"foob"),
        ],
    )
    def test_padding_is_optional(self, text, expected) -> None:
        assert decode_base32(text) == expected

    def test_matches_stdlib_for_unpadded_authenticator_secret(self) -> None:
        assert decode_base32("JBSWY3DPEHPK3PXP") == base64.b32decode("JBSWY3DPEHPK3PXP")

    @pytest.mark.parametrize("length", range(1, 41))
    @pytest.mark.parametrize("form", ["upper", "lower", "padded", "unpadded"])
    def test_decodes_every_encoded_length(self, length, form) -> None:
        data = bytes((i * 37 + length) % 256 for i in range(length))
        text = base64.b32encode(data).decode("ascii")
        if form == "lower":
            text = text.lower()
        elif form == "unpadded":
            text = text.rstrip("=")

        assert decode_base32(text) == data

    @pytest.mark.parametrize("text", ["ABC1", "ABC8", "AB CD", "AB-CD"])
    def test_rejects_symbols_outside_alphabet(self, text) -> None:
        with pytest.raises(InvalidSecretEncoding) as excinfo:
            decode_base32(text)
        assert excinfo.value.field == "secret"

    def test_empty_input_is_missing_secret(self) -> None:
        with pytest.raises(MissingSecret):
            decode_base32("")


class TestDecodeHex:
    def test_decodes_even_length(self, rfc_secret, rfc_hex) -> None:
        assert decode_hex(rfc_hex) == rfc_secret

    def test_odd_length_is_left_padded(self) -> None:
        assert decode_hex("abc") == b"\x0a\xbc"

    def test_accepts_upper_case(self) -> None:
        assert decode_hex("DEADBEEF") == b"\xde\xad\xbe\xef"

    def test_rejects_non_hex(self) -> None:
        with pytest.raises(InvalidSecretEncoding):
            decode_hex("xyz")


class TestDetectEncoding:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("3132333435363738393031323334353637383930", ENCODING_HEX),
            ("0189", ENCODING_HEX),
            ("ABCDEF", ENCODING_BASE32),
            ("abcdef", ENCODING_BASE32),
            ("JBSWY3DPEHPK3PXP", ENCODING_BASE32),
        ],
    )
    def test_detects_shape(self, text, expected) -> None:
        assert detect_encoding(text) == expected

    def test_shape_predicates(self) -> None:
        assert is_hex("00ff")
        assert not is_hex("00fg")
        assert is_base32("ABCD==")
        assert not is_base32("AB=CD")
        assert not is_base32("")
        assert not is_hex("")


def test_decode_secret_dispatches(rfc_secret, rfc_hex, rfc_base32) -> None:
    assert decode_secret(rfc_hex) == rfc_secret
    assert decode_secret(rfc_base32) == rfc_secret
    assert decode_secret("abcd", force_hex=True) == b"\xab\xcd"


def test_decode_secret_force_hex_overrides_base32_shape() -> None:
    # "ABCDEF" は Base32 とも読める
    assert decode_secret("ABCDEF") == decode_base32("ABCDEF")
    assert decode_secret("ABCDEF", force_hex=True) == b"\xab\xcd\xef"
