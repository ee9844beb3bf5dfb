"""Scope enforcement for uploads made with a validated capability."""

from dataclasses import dataclass

from services.errors import AuthorizationError
from services.paths import is_valid_owner_id
from services.token_validation_service import UploadCapability


@dataclass(frozen=True)
class UploadGrant:
    """An authorized upload target inside one owner's storage space."""

    owner_id: str
    client_name: str
    section: str
    folder_path: str

    @property
    def storage_prefix(self) -> str:
        """``{owner_id}/{client}/{section}``; the owner segment comes from the verified token."""
        return f"{self.owner_id}/{self.folder_path}"

    def storage_path(self, stored_name: str) -> str:
        """Full storage key for a stored file name."""
        return f"{self.storage_prefix}/{stored_name}"


def authorize_upload(
    capability: UploadCapability,
    requested_section: str,
    requested_client_name: str | None = None,
    requested_owner_id: str | None = None,
) -> UploadGrant:
    """
    Check that an upload request stays inside the token's granted scope.

    Checks run in order: section granted, client name matches, owner id
    matches, owner id well-formed.

    Args:
        capability: Capability returned by token validation
        requested_section: Section the caller wants to upload into
        requested_client_name: Client name sent by the caller, if any
        requested_owner_id: Owner id sent by the caller, if any

    Returns:
        UploadGrant for the requested section

    Raises:
        AuthorizationError: If the request reaches outside the token's scope
    """
    section = (requested_section or "").strip().lower()
    if section not in capability.sections:
        raise AuthorizationError(
            "Section not authorized for this upload token",
            reason="section_not_granted",
        )

    if requested_client_name and requested_client_name.strip() != capability.client_name:
        raise AuthorizationError("Client name mismatch", reason="client_mismatch")

    if requested_owner_id and requested_owner_id != capability.owner_id:
        raise AuthorizationError("Owner mismatch", reason="owner_mismatch")

    if not is_valid_owner_id(capability.owner_id):
        raise AuthorizationError("Malformed owner id in upload token", reason="malformed_owner_id")

    folder_path = capability.folder_paths[capability.sections.index(section)]
    return UploadGrant(
        owner_id=capability.owner_id,
        client_name=capability.client_name,
        section=section,
        folder_path=folder_path,
    )
