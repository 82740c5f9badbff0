"""
StudyGrove Backend — Identity Verification
===========================================

What:  Turns a bearer credential into the caller's user id.
Why:   Accounts live with an external identity provider; this service only
       checks the token and trusts the `sub` claim it carries.
Who:   dependencies.get_current_user(), once per protected request.

Providers (AUTH_PROVIDER):
    firebase       RS256 Firebase ID tokens. Signing keys come from Google's
                   JWKS endpoint and are cached by PyJWKClient.
    shared_secret  HS256 tokens signed with AUTH_SHARED_SECRET. Used by local
                   development and integration environments.

Every failure (bad signature, expired, wrong audience, JWKS unreachable)
raises UnauthorizedError; the reason is logged, the client sees 401.

verify() is synchronous: the first Firebase call per key rotation performs
an HTTP fetch, so callers run it in the threadpool.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt

from studygrove.config import Settings
from studygrove.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"
REQUIRED_CLAIMS = ["exp", "iat", "sub"]


@dataclass(frozen=True)
class AuthenticatedUser:
    uid: str
    email: Optional[str] = None


class IdentityVerifier(ABC):
    @abstractmethod
    def verify(self, token: str) -> AuthenticatedUser:
        """
        Validate a bearer token.

        Raises:
            UnauthorizedError: The token is not acceptable for any reason.
        """
        ...


def _user_from_claims(claims: Dict[str, Any]) -> AuthenticatedUser:
    uid = claims.get("sub")
    if not isinstance(uid, str) or not uid:
        raise UnauthorizedError(reason="token has no subject")
    return AuthenticatedUser(uid=uid, email=claims.get("email"))


class FirebaseTokenVerifier(IdentityVerifier):
    """
    Verifies Firebase ID tokens.

    Checks:
        - signature against the key named by the token's `kid`
        - aud == project id, iss == https://securetoken.google.com/<project>
        - exp, iat and sub present; exp not passed (with leeway)
    """

    def __init__(self, project_id: str, jwks_url: str, leeway: int = 10):
        self.project_id = project_id
        self.issuer = f"{FIREBASE_ISSUER_PREFIX}{project_id}"
        self.leeway = leeway
        self.jwks_client = jwt.PyJWKClient(jwks_url, cache_keys=True)

    def verify(self, token: str) -> AuthenticatedUser:
        if not self.project_id:
            raise UnauthorizedError(reason="FIREBASE_PROJECT_ID not configured")
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as e:
            logger.info("Rejected Firebase token: %s", str(e))
            raise UnauthorizedError(reason=type(e).__name__) from e
        return _user_from_claims(claims)


class SharedSecretTokenVerifier(IdentityVerifier):
    """HS256 tokens signed with a shared secret. No audience or issuer check."""

    def __init__(self, secret: str, leeway: int = 10):
        self.secret = secret
        self.leeway = leeway

    def verify(self, token: str) -> AuthenticatedUser:
        if not self.secret:
            raise UnauthorizedError(reason="AUTH_SHARED_SECRET not configured")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=["HS256"],
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as e:
            logger.info("Rejected shared-secret token: %s", str(e))
            raise UnauthorizedError(reason=type(e).__name__) from e
        return _user_from_claims(claims)


def build_identity_verifier(config: Settings) -> IdentityVerifier:
    """Pick the verifier named by AUTH_PROVIDER."""
    if config.auth_provider == "shared_secret":
        return SharedSecretTokenVerifier(
            secret=config.auth_shared_secret,
            leeway=config.auth_token_leeway,
        )
    return FirebaseTokenVerifier(
        project_id=config.firebase_project_id,
        jwks_url=config.firebase_jwks_url,
        leeway=config.auth_token_leeway,
    )
