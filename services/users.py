import logging
from typing import Any, Dict

from pymongo.database import Database

from config import Settings
from database import USERS
from errors import AuthError
from schemas import LoginBody, SignupBody
from security import Claims, TokenService, hash_password, verify_password

from .base import EntityService

logger = logging.getLogger(__name__)


class UserService(EntityService):
    collection_name = USERS
    label = "users"
    noun = "User"
    hidden_fields = ("password", "token", "refresh_token")

    def __init__(self, db: Database, tokens: TokenService, settings: Settings):
        super().__init__(db)
        self.tokens = tokens
        self.hash_method = settings.password_hash_method

    def _with_tokens(self, doc: Dict[str, Any], token: str, refresh_token: str) -> Dict[str, Any]:
        return {**self.public(doc), "token": token, "refresh_token": refresh_token}

    def signup(self, body: SignupBody) -> Dict[str, Any]:
        email = body.email.lower()
        self.ensure_unique("email", email, "Email already exists")

        fields = {
            "first_name": body.first_name,
            "last_name": body.last_name,
            "email": email,
            "phone": body.phone,
            "password": hash_password(body.password, self.hash_method),
        }
        user = self.insert(fields)
        token, refresh_token = self.tokens.issue_tokens(email, body.first_name, body.last_name, user["user_id"])
        self.tokens.persist_tokens(user["user_id"], token, refresh_token)
        logger.info("User %s signed up", user["user_id"])
        return self._with_tokens(user, token, refresh_token)

    def login(self, body: LoginBody) -> Dict[str, Any]:
        found = self.collection.find_one({"email": body.email.lower()})
        if not found or not verify_password(body.password, found.get("password")):
            logger.warning("Failed login attempt")
            raise AuthError("Incorrect email or password")

        token, refresh_token = self.tokens.issue_tokens(
            found["email"], found.get("first_name", ""), found.get("last_name", ""), found["user_id"]
        )
        self.tokens.persist_tokens(found["user_id"], token, refresh_token)
        logger.info("User %s logged in", found["user_id"])
        return self._with_tokens(found, token, refresh_token)

    def logout(self, claims: Claims) -> None:
        self.tokens.revoke_tokens(claims.uid)
        logger.info("User %s logged out", claims.uid)
