"""
Password hashing and access tokens.

Tokens are HS256 JWTs. The latest access/refresh pair is stored on the user
record; validation requires the presented token to still be the stored one,
so logging out (which clears the pair) revokes it immediately.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from pymongo.collection import Collection
from werkzeug.security import check_password_hash, generate_password_hash

from config import Settings
from errors import AuthError

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


def hash_password(password: str, method: str = "scrypt") -> str:
    return generate_password_hash(password, method=method)


def verify_password(candidate: str, password_hash: Optional[str]) -> bool:
    if not candidate or not password_hash:
        return False
    try:
        return check_password_hash(password_hash, candidate)
    except ValueError:
        # unknown or corrupted hash format
        return False


@dataclass(frozen=True)
class Claims:
    uid: str
    email: str
    first_name: str
    last_name: str
    expires_at: datetime

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Claims":
        return cls(
            uid=payload.get("uid") or payload.get("sub") or "",
            email=payload.get("email") or "",
            first_name=payload.get("first_name") or "",
            last_name=payload.get("last_name") or "",
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


class TokenService:
    def __init__(self, users: Collection, settings: Settings):
        self.users = users
        self.secret = settings.secret_key
        self.algorithm = settings.jwt_algorithm
        self.access_ttl = timedelta(hours=settings.access_token_expire_hours)
        self.refresh_ttl = timedelta(hours=settings.refresh_token_expire_hours)

    def _sign(self, identity: Dict[str, Any], token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {**identity, "type": token_type, "jti": uuid.uuid4().hex, "iat": now, "exp": now + ttl}
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def issue_tokens(self, email: str, first_name: str, last_name: str, uid: str) -> Tuple[str, str]:
        identity = {
            "sub": uid,
            "uid": uid,
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
        }
        return (
            self._sign(identity, ACCESS, self.access_ttl),
            self._sign(identity, REFRESH, self.refresh_ttl),
        )

    def persist_tokens(self, user_id: str, token: str, refresh_token: str) -> None:
        self.users.update_one(
            {"user_id": user_id},
            {"$set": {
                "token": token,
                "refresh_token": refresh_token,
                "updated_at": datetime.now(timezone.utc),
            }},
            upsert=True,
        )

    def revoke_tokens(self, user_id: str) -> None:
        self.users.update_one(
            {"user_id": user_id},
            {"$set": {
                "token": None,
                "refresh_token": None,
                "updated_at": datetime.now(timezone.utc),
            }},
        )

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError("Token is expired")
        except JWTError as e:
            raise AuthError(f"Invalid token: {e}")

    def validate(self, token: str) -> Claims:
        payload = self.decode(token)
        if payload.get("type") != ACCESS:
            raise AuthError("The token is invalid")
        if "exp" not in payload:
            raise AuthError("The token is invalid")

        claims = Claims.from_payload(payload)
        if claims.expires_at <= datetime.now(timezone.utc):
            raise AuthError("Token is expired")

        user = self.users.find_one({"user_id": claims.uid}, {"token": 1})
        if not user or not user.get("token") or user["token"] != token:
            raise AuthError("Invalid or expired token")
        return claims
