import json
import logging

from otpcore.logging_config import (
    JSONMessageFormatter,
    configure_logging,
    redact_fields,
    structured_logger,
    uri_scheme,
)


def test_structured_logger_emits_json(caplog) -> None:
    caplog.set_level(logging.INFO, logger="otpcore")
    log = structured_logger("otpcore.test", component="tests").bind(profile="fast")

    log.info("image_pipeline.decoded", attempts=2)

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "image_pipeline.decoded"
    assert payload["level"] == "INFO"
    assert payload["component"] == "tests"
    assert payload["profile"] == "fast"
    assert payload["attempts"] == 2
    assert payload["ts"].endswith("Z")


def test_disabled_levels_are_not_emitted(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="otpcore")
    structured_logger("otpcore.test").debug("noise")
    assert caplog.records == []


def test_bind_does_not_modify_parent(caplog) -> None:
    caplog.set_level(logging.INFO, logger="otpcore")
    parent = structured_logger("otpcore.test")
    parent.bind(extra="x")

    parent.info("event")

    assert "extra" not in json.loads(caplog.records[-1].getMessage())


def test_configure_logging_adds_single_handler() -> None:
    logger = configure_logging("debug")
    configure_logging("warning")

    marked = [h for h in logger.handlers if getattr(h, "_is_otpcore_stream_handler", False)]
    assert len(marked) == 1
    assert logger.level == logging.WARNING


def test_configure_logging_unknown_level_defaults_to_info() -> None:
    assert configure_logging("chatty").level == logging.INFO


def test_formatter_wraps_plain_messages() -> None:
    record = logging.LogRecord("otpcore", logging.ERROR, __file__, 1, "plain %s", ("text",), None)
    payload = json.loads(JSONMessageFormatter().format(record))
    assert payload["message"] == "plain text"
    assert payload["level"] == "ERROR"


def test_formatter_passes_json_through() -> None:
    record = logging.LogRecord("otpcore", logging.INFO, __file__, 1, '{"event": "x"}', None, None)
    assert JSONMessageFormatter().format(record) == '{"event": "x"}'


def test_uri_scheme() -> None:
    assert uri_scheme("otpauth://totp/x?secret=ABC") == "otpauth://"
    assert uri_scheme("otpauth-migration://offline?data=x") == "otpauth-migration://"
    assert uri_scheme("no scheme here") is None
    assert uri_scheme(None) is None


def test_credential_fields_are_redacted_on_emit(caplog) -> None:
    caplog.set_level(logging.INFO, logger="otpcore")
    uri = "otpauth://totp/ACME:john?secret=JBSWY3DPEHPK3PXP"

    structured_logger("otpcore.test").bind(uri=uri).info("credential.parsed", secret="JBSWY3DPEHPK3PXP")

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["scheme"] == "otpauth://"
    assert payload["secret"] == "***"
    assert "uri" not in payload
    assert "JBSWY3DPEHPK3PXP" not in caplog.text


def test_redact_fields() -> None:
    redacted = redact_fields({"raw_text": "not a uri", "raw_secret": "", "attempts": 3})
    assert redacted == {"scheme": None, "raw_secret": "", "attempts": 3}
