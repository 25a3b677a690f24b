"""
Credential service: signup, login and current-user lookup.
"""

import logging
from typing import Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from backend.auth_service.store import User, UserStore
from backend.auth_service.utils import create_token
from backend.config import Settings
from backend.errors import Conflict, InvalidCredentials, NotFound, ValidationError

MIN_PASSWORD_LENGTH = 6


class CredentialService:

    def __init__(self, users: UserStore, settings: Settings, hasher: Optional[PasswordHasher] = None):
        self.users = users
        self.settings = settings
        self.ph = hasher or PasswordHasher()

    def signup(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """
        Register a new user and issue their first token.

        Raises:
            ValidationError: Missing fields or a short password.
            Conflict: The email is already registered.
            ConfigurationError: The signing secret is not set.
        """
        name = (name or "").strip()
        email = (email or "").strip()
        password = password or ""

        if not name or not email or not password:
            raise ValidationError("Please provide all required fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if self.users.find_by_email(email) is not None:
            logging.info(f"[Auth] Signup rejected, email already registered: {email}")
            raise Conflict("User already exists with this email")

        pw_hash = self.ph.hash(password)

        # A concurrent signup can still win between the lookup and the insert
        user = self.users.insert(name, email, pw_hash)
        if user is None:
            raise Conflict("User already exists with this email")

        token = create_token(user.id, user.email, self.settings.jwt_secret)
        logging.info(f"[Auth] New user registered: id={user.id}")
        return user, token

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """
        Authenticate by email and password.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        email = (email or "").strip()
        password = password or ""

        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = self.users.find_by_email(email)
        if user is None:
            raise InvalidCredentials()

        try:
            self.ph.verify(user.password_hash, password)
        except (VerificationError, InvalidHashError):
            raise InvalidCredentials()

        token = create_token(user.id, user.email, self.settings.jwt_secret)
        logging.info(f"[Auth] Login successful: id={user.id}")
        return user, token

    def get_current_user(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user
