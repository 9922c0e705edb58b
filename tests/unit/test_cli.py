# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from datetime import UTC, datetime

import pytest
from aws_s3_presigner import get_s3_presigned_url
from aws_s3_presigner.cli import main

ACCESS_KEY: str = "AKIDEXAMPLE"
SECRET_KEY: str = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
HOST: str = "nrs.objectstore.gov.bc.ca"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_REGION",
        "S3_PRESIGN_SERVICE",
        "S3_PRESIGN_HOST",
        "S3_PRESIGN_EXPIRES",
    ):
        monkeypatch.delenv(name, raising=False)


def expected_url(expires: int = 3600) -> str:
    return get_s3_presigned_url(
        "rlosde",
        "/resultsvctesttag2.jpg",
        ACCESS_KEY,
        SECRET_KEY,
        HOST,
        expires,
        clock=lambda: datetime(2024, 1, 1, tzinfo=UTC),
    )


def test_explicit_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    status = main(
        [
            "rlosde",
            "/resultsvctesttag2.jpg",
            "--host",
            HOST,
            "--access-key",
            ACCESS_KEY,
            "--secret-key",
            SECRET_KEY,
            "--timestamp",
            "20240101T000000Z",
        ]
    )
    assert status == 0
    assert capsys.readouterr().out == f"{expected_url()}\n"


def test_environment_arguments(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", ACCESS_KEY)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", SECRET_KEY)
    monkeypatch.setenv("S3_PRESIGN_HOST", HOST)
    monkeypatch.setenv("S3_PRESIGN_EXPIRES", "900")
    status = main(
        ["rlosde", "/resultsvctesttag2.jpg", "--timestamp", "20240101T000000Z"]
    )
    assert status == 0
    assert capsys.readouterr().out == f"{expected_url(900)}\n"


def test_missing_credentials(capsys: pytest.CaptureFixture[str]) -> None:
    status = main(["rlosde", "/resultsvctesttag2.jpg", "--host", HOST])
    assert status == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "AWS_ACCESS_KEY_ID" in captured.err


def test_missing_host(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", ACCESS_KEY)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", SECRET_KEY)
    with pytest.raises(SystemExit) as exc_info:
        main(["rlosde", "/resultsvctesttag2.jpg"])
    assert exc_info.value.code == 2


@pytest.mark.parametrize(
    "args",
    [
        ["rlosde", "resultsvctesttag2.jpg"],
        ["rlosde", "/resultsvctesttag2.jpg", "--expires", "0"],
        ["rlosde", "/resultsvctesttag2.jpg", "--timestamp", "2024-01-01"],
    ],
)
def test_invalid_input(args: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    status = main(
        [*args, "--host", HOST, "--access-key", ACCESS_KEY, "--secret-key", SECRET_KEY]
    )
    assert status == 2
    assert "s3-presign: error:" in capsys.readouterr().err


def test_invalid_environment_expires(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("S3_PRESIGN_EXPIRES", "an hour")
    status = main(
        [
            "rlosde",
            "/resultsvctesttag2.jpg",
            "--host",
            HOST,
            "--access-key",
            ACCESS_KEY,
            "--secret-key",
            SECRET_KEY,
        ]
    )
    assert status == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "s3-presign: error:" in captured.err
    assert "S3_PRESIGN_EXPIRES" in captured.err


def test_invalid_host(capsys: pytest.CaptureFixture[str]) -> None:
    status = main(
        [
            "rlosde",
            "/resultsvctesttag2.jpg",
            "--host",
            f"{HOST}?x",
            "--access-key",
            ACCESS_KEY,
            "--secret-key",
            SECRET_KEY,
        ]
    )
    assert status == 2
    assert "s3-presign: error:" in capsys.readouterr().err


def test_trace_redacts_secrets(
    caplog: pytest.LogCaptureFixture, capsys: pytest.CaptureFixture[str]
) -> None:
    caplog.set_level(logging.DEBUG, logger="aws_s3_presigner")
    status = main(
        [
            "rlosde",
            "/resultsvctesttag2.jpg",
            "--host",
            HOST,
            "--access-key",
            ACCESS_KEY,
            "--secret-key",
            SECRET_KEY,
            "--trace",
        ]
    )
    assert status == 0
    assert "string_to_sign:" in caplog.text
    assert "<redacted>" in caplog.text
    assert SECRET_KEY not in caplog.text
    assert capsys.readouterr().out.startswith(f"https://{HOST}/rlosde/")
