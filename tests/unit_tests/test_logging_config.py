"""Unit tests for log redaction of upload tokens."""

import logging

from auth.schemas import UploadTokenClaims
from auth.upload_token import UploadTokenSigner
from logging_config import REDACTED_TOKEN, UploadTokenRedactionFilter


def make_record(msg, *args) -> logging.LogRecord:
    return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, msg, args, None)


def signed_token() -> str:
    return UploadTokenSigner("secret").sign(
        UploadTokenClaims(
            sub="user_2abcOwnerA",
            client_name="Acme Corp",
            sections=["invoices"],
            folder_paths=["acme_corp/invoices"],
            iat=1000,
            exp=2000,
            jti="upload_1000000_abcdef1234",
        )
    )


def test_token_in_args_is_redacted():
    token = signed_token()
    record = make_record('%s - "GET %s HTTP/1.1" %d', "203.0.113.7", f"/api/v1/validate-token/{token}", 200)

    assert UploadTokenRedactionFilter().filter(record) is True

    message = record.getMessage()
    assert token not in message
    assert f"/api/v1/validate-token/{REDACTED_TOKEN}" in message


def test_message_without_token_is_untouched():
    record = make_record("Issued upload link %s", "upload_1000000_abcdef1234")

    UploadTokenRedactionFilter().filter(record)

    assert record.args == ("upload_1000000_abcdef1234",)
    assert record.getMessage() == "Issued upload link upload_1000000_abcdef1234"
