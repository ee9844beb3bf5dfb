"""Signing and verification of document upload capability tokens."""

from typing import Any

from jose import jwt

from auth.schemas import UploadTokenClaims


class UploadTokenSigner:
    """HS256 signer bound to one secret, issuer and audience.

    Constructed once by the service container and injected wherever tokens
    are minted or checked.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        issuer: str = "accountancy-platform",
        audience: str = "document-upload",
    ):
        if not secret:
            raise ValueError("Upload token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    def sign(self, claims: UploadTokenClaims) -> str:
        """
        Encode and sign the claims.

        Args:
            claims: Upload token claims

        Returns:
            Compact JWS string
        """
        payload = claims.model_dump()
        payload["iss"] = self.issuer
        payload["aud"] = self.audience
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def unverified_header(self, token: str) -> dict[str, Any]:
        """
        Read the JOSE header without checking the signature.

        Raises:
            JWTError: If the header segment cannot be decoded
        """
        return jwt.get_unverified_header(token)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Check signature, algorithm, issuer and audience and return raw claims.

        Expiry is not checked here; the validator compares ``exp`` against
        its own clock and against the audit record.

        Args:
            token: Compact JWS string

        Returns:
            Decoded claims dict

        Raises:
            JWTError: If the signature, issuer or audience does not verify
        """
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self.algorithm],
            audience=self.audience,
            issuer=self.issuer,
            options={
                "verify_exp": False,
                "require_aud": True,
                "require_iss": True,
                "require_iat": True,
                "require_exp": True,
                "require_jti": True,
                "require_sub": True,
            },
        )
