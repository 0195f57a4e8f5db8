"""
Bearer token handling.

Tokens are HS256 JWTs signed with the secret shared with the identity
service. Claims: ``sub`` (user id), ``email``, ``role``, ``tenantId`` and an
optional display ``name``.
"""
import jwt
from typing import Any, Dict, Optional
from datetime import timedelta

from pydantic import ValidationError as PydanticValidationError

from ..config.settings import settings
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .time import utc_now
from .logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "
REQUIRED_CLAIMS = ("sub", "email", "role", "tenantId")
DEFAULT_TOKEN_LIFETIME = timedelta(hours=8)


def _strip_bearer(token: str) -> str:
    return token[len(BEARER_PREFIX):] if token.startswith(BEARER_PREFIX) else token


class JWTValidator:

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify a token, with or without the ``Bearer`` prefix.

        Raises AuthenticationError when the token is empty, badly signed,
        expired or lacks one of REQUIRED_CLAIMS.
        """
        if not token:
            raise AuthenticationError("Token is missing")

        try:
            claims = jwt.decode(
                _strip_bearer(token),
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": True, "require": ["sub"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise AuthenticationError("Token has expired")
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected token: {e}")
            raise AuthenticationError(f"Invalid token: {e}")

        missing = [claim for claim in REQUIRED_CLAIMS if not claims.get(claim)]
        if missing:
            logger.warning(f"Rejected token without {', '.join(missing)}")
            raise AuthenticationError("Token is missing required claims", details={"missing": missing})
        return claims

    def get_actor_context(self, token: str) -> ActorContext:
        claims = self.validate_token(token)
        try:
            return ActorContext(
                user_id=str(claims["sub"]),
                tenant_id=str(claims["tenantId"]),
                email=claims["email"],
                name=claims.get("name"),
                role=str(claims["role"]).upper(),
            )
        except PydanticValidationError as e:
            # Unknown role or malformed email
            logger.warning(f"Token claims rejected: {e.error_count()} errors")
            raise AuthenticationError("Token claims are invalid")

    def create_token(self, actor: ActorContext, expires_in: timedelta = DEFAULT_TOKEN_LIFETIME) -> str:
        """Sign a token for ``actor``; used by local tooling and tests."""
        issued = utc_now()
        return jwt.encode(
            {
                "sub": actor.user_id,
                "email": actor.email,
                "name": actor.name,
                "role": actor.role.value,
                "tenantId": actor.tenant_id,
                "iat": issued,
                "exp": issued + expires_in,
            },
            self.secret,
            algorithm=self.algorithm,
        )


_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """Actor for an ``Authorization`` header value"""
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return get_jwt_validator().get_actor_context(authorization)
