"""Unit tests for upload scope enforcement."""

from datetime import datetime, UTC
from uuid import uuid4

import pytest

from services.errors import AuthorizationError
from services.token_validation_service import UploadCapability
from services.upload_authorizer import authorize_upload

OWNER = "user_2abcOwnerA"


@pytest.fixture
def capability():
    return UploadCapability(
        owner_id=OWNER,
        client_name="Acme Corp",
        sections=["invoices", "receipts"],
        folder_paths=["acme_corp/invoices", "acme_corp/receipts"],
        token_id="upload_1741078800000_abcdef1234",
        expires_at=datetime(2025, 3, 11, 9, 0, tzinfo=UTC),
        audit_record_id=uuid4(),
    )


def test_authorize_granted_section(capability):
    grant = authorize_upload(capability, "receipts")

    assert grant.section == "receipts"
    assert grant.folder_path == "acme_corp/receipts"
    assert grant.storage_prefix == f"{OWNER}/acme_corp/receipts"
    assert grant.storage_path("scan_1_abcd.pdf") == f"{OWNER}/acme_corp/receipts/scan_1_abcd.pdf"


def test_authorize_normalizes_requested_section(capability):
    assert authorize_upload(capability, "  Invoices ").section == "invoices"


@pytest.mark.parametrize("section", ["payroll", "", "acme_corp/invoices", "invoices/../payroll"])
def test_section_not_granted(capability, section):
    with pytest.raises(AuthorizationError) as exc_info:
        authorize_upload(capability, section)

    assert exc_info.value.reason == "section_not_granted"
    assert exc_info.value.status_code == 403


def test_client_name_must_match(capability):
    authorize_upload(capability, "invoices", requested_client_name=" Acme Corp ")

    with pytest.raises(AuthorizationError) as exc_info:
        authorize_upload(capability, "invoices", requested_client_name="Globex")

    assert exc_info.value.reason == "client_mismatch"


def test_owner_id_must_match(capability):
    authorize_upload(capability, "invoices", requested_owner_id=OWNER)

    with pytest.raises(AuthorizationError) as exc_info:
        authorize_upload(capability, "invoices", requested_owner_id="user_2xyzOwnerB")

    assert exc_info.value.reason == "owner_mismatch"


def test_section_checked_before_client(capability):
    with pytest.raises(AuthorizationError) as exc_info:
        authorize_upload(capability, "payroll", requested_client_name="Globex")

    assert exc_info.value.reason == "section_not_granted"


def test_malformed_owner_in_capability(capability):
    """Test: An owner id that could escape its storage prefix is refused."""
    bad = capability.model_copy(update={"owner_id": "../user_2xyzOwnerB"})

    with pytest.raises(AuthorizationError) as exc_info:
        authorize_upload(bad, "invoices")

    assert exc_info.value.reason == "malformed_owner_id"
