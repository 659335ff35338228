"""Password digests and account session tokens.

Account passwords are hashed with bcrypt. Credential passwords are stored as a
hex SHA-256 digest so that a credential can be looked up by its hash.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from bcrypt import checkpw, gensalt, hashpw

LOGGER = logging.getLogger(__name__)


def hash_credential_password(password: str) -> str:
    """Return the hex SHA-256 digest of a credential password."""
    return hashlib.sha256(password.encode()).hexdigest()


def hash_account_password(password: str) -> bytes:
    """Return a salted bcrypt hash of an account password."""
    return hashpw(password.encode(), gensalt())


def check_account_password(password: str, hashed_password: bytes | str) -> bool:
    """Check an account password against its bcrypt hash."""
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode()
    return checkpw(password.encode(), hashed_password)


@dataclass
class SecurityManager:
    """Manager for account session tokens.

    :param str secret_key: Secret key for JWT signing (generated if not provided)
    :param str algorithm: JWT signing algorithm
    :param int expire_minutes: Token expiration time in minutes
    """

    DEFAULT_JWT_ALGORITHM = "HS512"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32
    TOKEN_TYPE = "access_token"

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES

    def __post_init__(self) -> None:
        """Generate secret key if not provided."""
        if (
            self.secret_key is None
            or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH
        ):
            self.secret_key = os.urandom(64).hex()

    def create_access_token(self, email: str) -> str:
        """Create a new JWT access token for an account.

        The role is deliberately not embedded: it is read from the account
        store on every lookup.

        :param email: The account email
        :return: A JWT access token as a string
        """
        now = datetime.now(UTC)
        payload = {
            "sub": email,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "iat": now,
            "type": self.TOKEN_TYPE,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str | None:
        """Verify and decode a JWT token, returning the account email.

        :param token: The JWT token string to verify
        :return: The email in the token subject if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except jwt.ExpiredSignatureError:
            LOGGER.debug("Rejected expired access token")
            return None
        except jwt.InvalidTokenError:
            LOGGER.debug("Rejected invalid access token")
            return None

        if payload.get("type") != self.TOKEN_TYPE:
            return None

        email = payload.get("sub")
        if not isinstance(email, str) or not email:
            return None
        return email
