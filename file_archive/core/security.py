"""JWT signing helpers and the caller-identity dependency."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fastapi import Header
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from file_archive.core.result import Result

logger = logging.getLogger("file_archive")

JWT_CLAIM_SUBJECT = "sub"


class TokenSigner:
    """Builds and validates HMAC-signed JSON Web Tokens.

    Tokens always carry the issuer, audience and an expiry; validation
    fails closed on any tampering, expiry or issuer/audience mismatch.
    """

    def __init__(self, secret: str, issuer: str, audience: str, algorithm: str = "HS256"):
        if not secret:
            raise ValueError("secret must be supplied")
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._algorithm = algorithm

    def generate_token(
        self,
        user_id: str,
        claims: Optional[Dict[str, str]] = None,
        expire_minutes: int = 60,
    ) -> Result[str]:
        """Create a token with ``user_id`` as subject plus the extra claims."""
        if not user_id or not user_id.strip():
            return Result.failure_unauthorized("generate_token: User Id must be supplied")

        now = datetime.now(timezone.utc)
        to_encode = dict(claims or {})
        to_encode.update({
            JWT_CLAIM_SUBJECT: user_id,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "exp": now + timedelta(minutes=expire_minutes),
        })
        return Result.success(jwt.encode(to_encode, self._secret, algorithm=self._algorithm))

    def validate_token(self, token: str) -> Result[dict]:
        """Validate signature, expiry, issuer and audience; return the claims."""
        if not token or not token.strip():
            return Result.failure_bad_request("validate_token: jwToken is missing")

        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            logger.error("Error in 'validate_token'. The error is: 'Token is malformed'.")
            return Result.failure_bad_request("Token is invalid")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except ExpiredSignatureError:
            return Result.failure_unauthorized("validate_token: The token has expired.")
        except JWTClaimsError as e:
            logger.warning("Token rejected in 'validate_token': %s", e)
            return Result.failure_unauthorized("validate_token: The token was not issued for this service.")
        except JWTError as e:
            logger.critical("Error occurred in 'validate_token'. The error is: '%s'.", e)
            return Result.failure_unauthorized("validate_token: Signature does not match.")

        if not payload:
            return Result.failure_bad_request("validate_token: There is no Claims in the token")

        if not payload.get(JWT_CLAIM_SUBJECT):
            return Result.failure_unauthorized("validate_token: The user is not identified in the calling client.")

        return Result.success(payload)


async def get_current_user_id(x_user_id: str = Header("", alias="X-User-Id")) -> str:
    """Identity of the caller as resolved by the hosting application.

    The archive does not authenticate; whatever sits in front of it is
    expected to set ``X-User-Id``.
    """
    return x_user_id.strip()
