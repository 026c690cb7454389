"""Password hashing and signed access tokens."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.exceptions import AuthenticationError, DuplicateUserError, NotFoundError
from app.models.orm import User
from app.utils.logger import logger

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Registers users, checks credentials and issues JWT access tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return pwd_context.verify(password, password_hash)

    def create_token(self, user_id: str) -> str:
        """Issue a signed token whose subject is the user id."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> str:
        """
        Validate a token and return the user id it was issued for.

        Raises:
            AuthenticationError: If the token is expired, tampered with or malformed
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Your token has expired.")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token.")

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Invalid token.")
        return user_id

    def register(self, db: Session, username: str, email: str, password: str) -> User:
        """
        Create a new user.

        Raises:
            DuplicateUserError: If the email or username is already taken
        """
        existing = db.scalars(
            select(User).where(or_(User.email == email, User.username == username))
        ).first()
        if existing:
            if existing.email == email:
                raise DuplicateUserError("Email already in use")
            raise DuplicateUserError("Username already in use")

        user = User(username=username, email=email, password_hash=self.hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """
        Look up a user by email and check the password.

        Raises:
            AuthenticationError: If the credentials do not match
        """
        user = db.scalars(select(User).where(User.email == email)).first()
        if not user or not self.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user

    def get_user(self, db: Session, user_id: str) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(
        self,
        db: Session,
        user: User,
        username: Optional[str] = None,
        email: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> User:
        """Apply the provided profile fields, keeping usernames and emails unique."""
        if username and username != user.username:
            taken = db.scalars(select(User).where(User.username == username)).first()
            if taken:
                raise DuplicateUserError("Username already in use")
            user.username = username
        if email and email != user.email:
            taken = db.scalars(select(User).where(User.email == email)).first()
            if taken:
                raise DuplicateUserError("Email already in use")
            user.email = email
        if profile_image:
            user.profile_image = profile_image
        db.commit()
        db.refresh(user)
        return user

    def change_password(
        self, db: Session, user: User, current_password: str, new_password: str
    ) -> None:
        """
        Replace the user's password.

        Raises:
            AuthenticationError: If the current password is wrong
        """
        if not self.verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = self.hash_password(new_password)
        db.commit()
        logger.info("Password changed", extra={"user_id": user.id})
