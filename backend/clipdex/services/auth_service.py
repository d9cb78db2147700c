"""Authentication service with business logic."""

import re
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Optional, Tuple

from clipdex.models.user import User, UserSession, OAuthAccount
from clipdex.models.schemas import UserCreate, UserLogin
from clipdex.utils.security import hash_password, verify_password, create_access_token
from clipdex.utils.validators import validate_email, validate_username, validate_password, sanitize_input
from clipdex.config import settings
from clipdex.services.logging_service import logger


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def register_user(db: Session, user_data: UserCreate) -> Tuple[Optional[User], Optional[str]]:
        """
        Register a new user.

        Every field check runs before the database is touched.

        Args:
            db: Database session
            user_data: User registration data

        Returns:
            Tuple of (user, error_message)
        """
        username = (user_data.username or "").strip()
        email = (user_data.email or "").strip().lower()
        password = user_data.password or ""

        if not username or not email or not password:
            return None, "Missing required fields"

        is_valid, error = validate_password(password)
        if not is_valid:
            return None, error

        is_valid, error = validate_email(email)
        if not is_valid:
            return None, error

        is_valid, error = validate_username(username)
        if not is_valid:
            return None, error

        # Check if email or username already exists
        existing_user = db.query(User).filter(
            (User.email == email) | (User.username == username)
        ).first()
        if existing_user:
            return None, "User already exists"

        new_user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            display_name=sanitize_input(user_data.display_name, max_length=100) or username,
            is_active=True
        )

        db.add(new_user)
        db.commit()
        db.refresh(new_user)

        logger.info("User registered", user_id=new_user.id, username=new_user.username)
        return new_user, None

    @staticmethod
    def authenticate_user(db: Session, login_data: UserLogin) -> Tuple[Optional[User], Optional[str]]:
        """
        Authenticate a user with username/password.

        Args:
            db: Database session
            login_data: Login credentials

        Returns:
            Tuple of (user, error_message)
        """
        identifier = login_data.username.strip()

        # Find user by username or email
        user = db.query(User).filter(
            (User.username == identifier) | (User.email == identifier.lower())
        ).first()

        if not user:
            return None, "Invalid credentials"

        if not user.is_active:
            return None, "Account is deactivated"

        if not verify_password(login_data.password, user.hashed_password):
            return None, "Invalid credentials"

        user.last_login = datetime.utcnow()
        db.commit()

        return user, None

    @staticmethod
    def create_user_session(
        db: Session,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> str:
        """
        Create a new user session and JWT token.

        Args:
            db: Database session
            user: User object
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            JWT access token
        """
        token_data = {
            "sub": str(user.id),
            "username": user.username
        }
        access_token = create_access_token(token_data)

        expires_at = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        session = UserSession(
            user_id=user.id,
            session_token=access_token,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=expires_at
        )

        db.add(session)
        db.commit()

        return access_token

    @staticmethod
    def validate_session(db: Session, token: str) -> Tuple[Optional[User], Optional[str]]:
        """
        Validate a session token.

        Args:
            db: Database session
            token: JWT token

        Returns:
            Tuple of (user, error_message)
        """
        session = db.query(UserSession).filter(UserSession.session_token == token).first()

        if not session:
            return None, "Invalid session"

        if session.expires_at < datetime.utcnow():
            db.delete(session)
            db.commit()
            return None, "Session expired"

        session.last_activity = datetime.utcnow()
        db.commit()

        user = db.query(User).filter(User.id == session.user_id).first()
        if not user or not user.is_active:
            return None, "User not found or inactive"

        return user, None

    @staticmethod
    def logout_user(db: Session, token: str) -> bool:
        """
        Logout user by deleting session.

        Returns:
            True if a session was deleted
        """
        session = db.query(UserSession).filter(UserSession.session_token == token).first()
        if session:
            db.delete(session)
            db.commit()
            return True
        return False

    @staticmethod
    def unique_username(db: Session, candidate: str) -> str:
        """
        Derive an available username from an identity-provider name.

        Invalid characters are dropped and a numeric suffix is appended on
        collision: ``ninja``, ``ninja1``, ``ninja2``...
        """
        base = re.sub(r"[^a-zA-Z0-9_-]", "", candidate or "")[:40]
        if not base or not base[0].isalpha():
            base = f"user{base}"
        if len(base) < 3:
            base = f"{base}clips"

        username = base
        suffix = 0
        while True:
            is_valid, _ = validate_username(username)
            taken = db.query(User.id).filter(User.username == username).first() is not None
            if is_valid and not taken:
                return username
            suffix += 1
            username = f"{base}{suffix}"

    @staticmethod
    def get_or_create_oauth_user(db: Session, provider: str, profile) -> User:
        """
        Resolve an identity-provider profile to a local user.

        An existing link wins; otherwise an account with the same email is
        linked; otherwise a new user is created.

        Args:
            db: Database session
            provider: Provider id (discord, google, twitch)
            profile: ProviderProfile returned by the identity service

        Returns:
            The linked user
        """
        account = db.query(OAuthAccount).filter(
            OAuthAccount.provider == provider,
            OAuthAccount.provider_account_id == profile.account_id
        ).first()

        if account:
            user = account.user
        else:
            email = profile.email.lower() if profile.email else None
            user = db.query(User).filter(User.email == email).first() if email else None

            if user is None:
                user = User(
                    username=AuthService.unique_username(db, profile.username),
                    display_name=profile.display_name or profile.username,
                    email=email,
                    avatar_url=profile.avatar_url,
                    is_active=True
                )
                db.add(user)
                db.flush()
                logger.info("User created from identity provider", provider=provider, user_id=user.id)

            db.add(OAuthAccount(
                user_id=user.id,
                provider=provider,
                provider_account_id=profile.account_id
            ))

        if not user.avatar_url and profile.avatar_url:
            user.avatar_url = profile.avatar_url
        user.last_login = datetime.utcnow()

        db.commit()
        db.refresh(user)
        return user
