"""
auth/tokens.py -- JWT issuing/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       id, userName, perfil (the role string), issue time and expiry (24h by
       default). The claim names are what the web front-end reads when it
       decodes the token body.
       Verification returns None on any failure -- the dependency layer turns
       that into a TokenInvalid (401). There is no refresh: an expired token
       means a new login.

  Passwords: bcrypt with a per-call salt. The cost factor comes from
       Settings.bcrypt_rounds. The _DUMMY_HASH constant enables timing
       equalization in the lockout state machine so response time does not
       reveal whether a username exists.

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup, so a misconfigured signing key stops the
       process before it accepts traffic instead of failing per request.

Layer rule: no imports from api/ or gym/. Import from core/ is allowed --
core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from auth.models import Role, TokenClaims
from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes (recent releases reject longer
    input). The API layer caps staff passwords at 20 characters.
    """
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch rather than an error: the
    attempt is rejected like any other wrong password.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash.
# Computed once at module load: a broken bcrypt backend fails the import, and
# with it application startup, instead of the first login request.
_DUMMY_HASH: str = hash_password("gymdesk_timing_dummy")


def equalize_timing(plain: str) -> None:
    """Spend one bcrypt verification on a throwaway hash.

    Called when the username does not exist, so an unknown account costs the
    same wall-clock time as a wrong password on a real one.
    """
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: int,
    username: str,
    role: Role | str,
    expire_seconds: int = 0,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed JWT with user identity and a fixed validity window.

    Args:
        user_id:        Numeric staff ID assigned by the store.
        username:       Login name, stored as the userName claim.
        role:           Role at issuance time.
        expire_seconds: Validity window in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (24h).
        issued_at:      Issue timestamp; defaults to now (UTC).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    issued = issued_at or datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "userName": username,
        "perfil": Role(role).value,
        "iat": issued,
        "exp": issued + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims | None:
    """Decode and verify a JWT. Returns TokenClaims or None on any failure.

    Failure covers a bad signature, a malformed token, an expired token,
    missing claims, and a role that is not one of the known roles.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    try:
        return TokenClaims(
            user_id=int(payload["id"]),
            username=str(payload["userName"]),
            role=Role(payload["perfil"]),
        )
    except (KeyError, TypeError, ValueError):
        return None
