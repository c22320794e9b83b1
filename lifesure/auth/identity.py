"""Verification of identity-provider bearer tokens.

Tokens are Firebase ID tokens: RS256 JWTs signed by Google's secure-token
service, whose public keys are published as a JWKS document. Every call
re-verifies the token; only the signing keys are cached, by the JWKS client.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

import jwt

from lifesure.core import config
from lifesure.core.errors import InvalidCredential, UpstreamFailure

logger = logging.getLogger(__name__)

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"

KeyResolver = Callable[[str], Any]


@dataclass(frozen=True)
class VerifiedIdentity:
    """Subject id and email taken from a verified token."""

    subject_id: str
    email: str | None = None


class IdentityVerifier:
    def __init__(
        self,
        audience: str,
        issuer: str,
        key_resolver: KeyResolver,
        algorithms: Sequence[str] = ("RS256",),
    ) -> None:
        self.audience = audience
        self.issuer = issuer
        self.key_resolver = key_resolver
        self.algorithms = list(algorithms)

    def verify(self, token: str) -> VerifiedIdentity:
        """Decode and validate ``token``.

        Raises:
            InvalidCredential: signature, expiry, audience, issuer or
                subject checks failed, or no signing key could be found.
            UpstreamFailure: the signing keys could not be fetched.
        """
        try:
            key = self.key_resolver(token)
            payload = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.PyJWKClientConnectionError as exc:
            logger.exception("Could not fetch identity-provider signing keys")
            raise UpstreamFailure("Failed to verify identity token", error=str(exc)) from exc
        except jwt.PyJWTError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise InvalidCredential() from exc

        subject = payload.get("sub")
        if not subject:
            raise InvalidCredential()

        return VerifiedIdentity(subject_id=subject, email=payload.get("email"))


def firebase_verifier(
    project_id: str = config.FIREBASE_PROJECT_ID,
    jwks_url: str = config.FIREBASE_JWKS_URL,
) -> IdentityVerifier:
    jwks_client = jwt.PyJWKClient(jwks_url)

    def resolve_signing_key(token: str) -> Any:
        return jwks_client.get_signing_key_from_jwt(token).key

    return IdentityVerifier(
        audience=project_id,
        issuer=f"{FIREBASE_ISSUER_PREFIX}{project_id}",
        key_resolver=resolve_signing_key,
    )
