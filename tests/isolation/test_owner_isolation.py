"""Owner isolation tests: one accountant's links never reach another's space."""

import pytest
from fastapi import status

from models.upload_link_audit import UploadLinkStatus
from tests.conftest import OWNER_A, OWNER_B


def create_link(client, headers, client_name="Acme Corp"):
    data = client.post(
        "/api/v1/upload-links",
        json={"client_name": client_name, "sections": ["Invoices"]},
        headers=headers,
    ).json()["data"]
    return data["upload_url"].split("/upload/", 1)[1], data["token_id"]


class TestUploadIsolation:
    """Uploads are confined to the token owner's storage prefix."""

    @pytest.mark.asyncio
    async def test_same_client_name_different_owners(
        self, client, owner_a_headers, owner_b_headers, blob_store
    ):
        """Two owners with a client of the same name get disjoint folders."""
        token_a, _ = create_link(client, owner_a_headers)
        token_b, _ = create_link(client, owner_b_headers)

        for token in (token_a, token_b):
            response = client.post(
                "/api/v1/upload-documents",
                data={"token": token, "section": "invoices"},
                files=[("files", ("a.pdf", b"%PDF-1.4", "application/pdf"))],
            )
            assert response.status_code == status.HTTP_200_OK

        paths = sorted(blob_store.blobs)
        assert paths[0].startswith(f"{OWNER_A}/acme_corp/invoices/")
        assert paths[1].startswith(f"{OWNER_B}/acme_corp/invoices/")

    @pytest.mark.asyncio
    async def test_owner_field_cannot_redirect_upload(self, client, owner_a_headers, blob_store):
        """Claiming another owner id in the form is refused, not honoured."""
        token_a, _ = create_link(client, owner_a_headers)

        response = client.post(
            "/api/v1/upload-documents",
            data={"token": token_a, "section": "invoices", "owner_id": OWNER_B},
            files=[("files", ("a.pdf", b"%PDF-1.4", "application/pdf"))],
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"]["reason"] == "owner_mismatch"
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_client_field_cannot_redirect_upload(self, client, owner_a_headers, blob_store):
        token_a, _ = create_link(client, owner_a_headers)

        response = client.post(
            "/api/v1/upload-documents",
            data={"token": token_a, "section": "invoices", "client_name": "Globex"},
            files=[("files", ("a.pdf", b"%PDF-1.4", "application/pdf"))],
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"]["reason"] == "client_mismatch"


class TestRevocationIsolation:
    """Only the issuing owner can revoke a link."""

    @pytest.mark.asyncio
    async def test_other_owner_cannot_revoke(self, client, owner_a_headers, owner_b_headers, store):
        token_a, token_id = create_link(client, owner_a_headers)

        response = client.post(f"/api/v1/upload-links/{token_id}/revoke", headers=owner_b_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert store.records[token_id].status == UploadLinkStatus.ACTIVE
        assert client.get(f"/api/v1/validate-token/{token_a}").status_code == status.HTTP_200_OK
