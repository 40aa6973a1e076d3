"""Command line entry point for the OTP core."""

from __future__ import annotations

import json
import mimetypes
from pathlib import Path
from typing import Any, Optional

import click

from otpcore import __version__
from otpcore.application.use_cases import (
    AdvanceCounterUseCase,
    CodeWindowUseCase,
    GenerateCodeUseCase,
    ParseCredentialUseCase,
    ScanImageUseCase,
    VerifyCodeUseCase,
)
from otpcore.domain.exceptions import OTPError
from otpcore.infrastructure.image_pipeline import ImageDecodePipeline
from otpcore.infrastructure.image_transforms import PROFILES, profile_for
from otpcore.logging_config import configure_logging
from otpcore.settings import settings


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _fail(exc: OTPError) -> click.ClickException:
    return click.ClickException(f"{exc.code}: {exc}")


@click.group(help="Parse credential URIs, generate and verify one-time codes.")
@click.version_option(__version__, prog_name="otpcore")
@click.option("--log-level", default=None, help="Override OTPCORE_LOG_LEVEL.")
def main(log_level: Optional[str]) -> None:
    configure_logging(log_level or settings.log_level, json_output=settings.log_json)


@main.command("parse")
@click.argument("uri")
def parse_command(uri: str) -> None:
    """Show the parsed credential (secret redacted)."""
    try:
        payload = ParseCredentialUseCase().execute(uri)
    except OTPError as exc:
        raise _fail(exc) from exc
    _echo_json(payload)
    if not payload.get("valid", False):
        click.get_current_context().exit(1)


@main.command("code")
@click.argument("uri")
@click.option("--at", "at_time", type=int, default=None, help="Unix time to generate the code for.")
def code_command(uri: str, at_time: Optional[int]) -> None:
    """Print the current code."""
    try:
        result = GenerateCodeUseCase().execute(uri, at_time=at_time)
    except OTPError as exc:
        raise _fail(exc) from exc
    _echo_json(result.to_dict())


@main.command("codes")
@click.argument("uri")
@click.option("--count", type=click.IntRange(min=1), default=None, help="Number of codes (default from settings).")
@click.option("--at", "at_time", type=int, default=None)
def codes_command(uri: str, count: Optional[int], at_time: Optional[int]) -> None:
    """Print the current code followed by the upcoming ones."""
    try:
        codes = CodeWindowUseCase().execute(uri, count=count, at_time=at_time)
    except OTPError as exc:
        raise _fail(exc) from exc
    _echo_json([code.to_dict() for code in codes])


@main.command("verify")
@click.argument("uri")
@click.argument("code")
@click.option("--window", "window_size", type=click.IntRange(min=0), default=None)
@click.option("--at", "at_time", type=int, default=None)
def verify_command(uri: str, code: str, window_size: Optional[int], at_time: Optional[int]) -> None:
    """Check CODE against the credential; exit status 1 when it does not match."""
    try:
        result = VerifyCodeUseCase().execute(uri, code, window_size=window_size, at_time=at_time)
    except OTPError as exc:
        raise _fail(exc) from exc
    _echo_json(result.to_dict())
    if not result.valid:
        click.get_current_context().exit(1)


@main.command("advance")
@click.argument("uri")
def advance_command(uri: str) -> None:
    """Show the credential with its counter moved forward by one."""
    try:
        advanced = AdvanceCounterUseCase().execute(uri)
    except (OTPError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(advanced.to_dict())


@main.command("scan")
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--profile", type=click.Choice(sorted(PROFILES)), default=None)
@click.option("--timeout", type=float, default=None, help="Seconds before giving up (0 disables).")
def scan_command(image: Path, profile: Optional[str], timeout: Optional[float]) -> None:
    """Decode a QR code image and parse the credential it contains."""
    pipeline = ImageDecodePipeline(profile=profile_for(profile or settings.pipeline_profile))
    mime_type, _ = mimetypes.guess_type(image.name)
    try:
        result = ScanImageUseCase(pipeline=pipeline).execute(image.read_bytes(), mime_type, timeout=timeout)
    except TimeoutError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_json(result.to_dict())
    if not result.success:
        click.get_current_context().exit(1)


if __name__ == "__main__":
    main()
