from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from portfolio_api.core.errors import InvalidCredentialError, MissingCredentialError


class PasswordHasher:
    """bcrypt password hashing with a configurable cost factor"""

    def __init__(self, rounds: int = 10):
        # bcrypt generates a salt per hash, so equal passwords hash differently
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Constant-time comparison of a password against a stored hash"""
        try:
            return self._context.verify(plain_password, hashed_password)
        except ValueError:
            # Stored value is not a recognizable hash
            return False


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    Tokens carry the user id in the standard 'sub' claim plus the email.
    Verification is stateless: there is no revocation list, a token stays
    valid until its 'exp' passes.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 120):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.lifetime = timedelta(minutes=expire_minutes)

    def issue(self, user_id: str, email: str, issued_at: Optional[datetime] = None) -> str:
        issued_at = issued_at or datetime.now(timezone.utc)
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> TokenClaims:
        if not token:
            raise MissingCredentialError()

        try:
            # Verifies signature and expiration
            payload = jwt.decode(token, self._secret_key,
                                 algorithms=[self._algorithm])
        except JWTError:
            raise InvalidCredentialError()

        user_id = payload.get("sub")
        if not user_id:
            raise InvalidCredentialError()

        return TokenClaims(user_id=user_id, email=payload.get("email", ""))
