# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from datetime import UTC, datetime

import pytest
from aws_s3_presigner import LoggingTracer, SigV4QueryPresigner, get_s3_presigned_url
from aws_s3_presigner.exceptions import PresignerWarning
from aws_s3_presigner.interfaces.tracing import SigningTracer
from aws_s3_presigner.tracing import REDACTED

SECRET_KEY: str = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
TRACING_LOGGER: str = "aws_s3_presigner.tracing"


def fixed_clock() -> datetime:
    return datetime(2024, 1, 1, tzinfo=UTC)


def test_logging_tracer_is_signing_tracer() -> None:
    assert isinstance(LoggingTracer(), SigningTracer)


def test_plain_values_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=TRACING_LOGGER)
    LoggingTracer().trace("canonical_headers", "host:example.com")
    assert caplog.records[0].levelno == logging.DEBUG
    assert caplog.records[0].getMessage() == "canonical_headers:\nhost:example.com"


def test_sensitive_values_are_redacted(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=TRACING_LOGGER)
    LoggingTracer().trace("signing_key", b"\x01\x02", sensitive=True)
    assert caplog.records[0].getMessage() == f"signing_key:\n{REDACTED}"
    assert "0102" not in caplog.text


def test_sensitive_values_opt_in(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=TRACING_LOGGER)
    with pytest.warns(PresignerWarning):
        tracer = LoggingTracer(include_sensitive=True)
    tracer.trace("signing_key", b"\x01\x02", sensitive=True)
    assert caplog.records[0].getMessage() == "signing_key:\n0102"


def test_custom_logger_and_level(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("presign.audit")
    caplog.set_level(logging.INFO, logger="presign.audit")
    LoggingTracer(logger=logger, level=logging.INFO).trace("signature", "abc123")
    assert caplog.records[0].name == "presign.audit"
    assert caplog.records[0].levelno == logging.INFO


def test_disabled_level_logs_nothing(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger=TRACING_LOGGER)
    LoggingTracer().trace("signature", "abc123")
    assert caplog.records == []


def test_presign_trace_excludes_key_material(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="aws_s3_presigner")
    presigner = SigV4QueryPresigner(clock=fixed_clock)
    signing_key = presigner.signing_key(
        secret_key=SECRET_KEY,
        signing_properties={
            "region": "us-east-1",
            "service": "s3",
            "date": "20240101T000000Z",
        },
    )
    url = get_s3_presigned_url(
        "rlosde",
        "/resultsvctesttag2.jpg",
        "AKIDEXAMPLE",
        SECRET_KEY,
        "nrs.objectstore.gov.bc.ca",
        clock=fixed_clock,
        tracer=LoggingTracer(),
    )
    assert "canonical_request:\nGET\n/rlosde/resultsvctesttag2.jpg" in caplog.text
    assert f"presigned_url:\n{url}" in caplog.text
    assert caplog.text.count(REDACTED) == 4
    assert SECRET_KEY not in caplog.text
    assert signing_key.hex() not in caplog.text
