import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db import repository
from model.usermodels import User, UserRole
from Schema.user_schema import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
)
from utils import token as tokens
from utils.exceptions import AuthenticationError, ConflictError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def _issue_tokens(self, user: User) -> AuthResponse:
        access_token = tokens.create_access_token(user)
        refresh_token = tokens.create_refresh_token(user)
        tokens.store_refresh_token(user.id, refresh_token)
        return AuthResponse(
            user=UserResponse.model_validate(user),
            token=access_token,
            refresh_token=refresh_token,
        )

    def register(self, data: RegisterRequest) -> AuthResponse:
        if repository.get_user_by_email(self.db, data.email) is not None:
            raise ConflictError("User already exists with this email")

        # Self-registration always creates an employee; roles are granted by an admin
        user = User(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password=tokens.hash_password(data.password),
            role=UserRole.EMPLOYEE,
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("User already exists with this email")
        self.db.refresh(user)

        logger.info(f"New user registered: {user.email}")
        return self._issue_tokens(user)

    def login(self, data: LoginRequest) -> AuthResponse:
        user = repository.get_user_by_email(self.db, data.email)
        if user is None or not tokens.verify_password(data.password, user.password):
            logger.warning(f"Failed login attempt for {data.email}")
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login = datetime.utcnow()
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} logged in")
        return self._issue_tokens(user)

    def refresh(self, refresh_token: str) -> AuthResponse:
        payload = tokens.verify_refresh_token(refresh_token)
        if payload is None:
            raise AuthenticationError("Invalid refresh token")
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid refresh token")
        if not tokens.is_refresh_token_valid(user_id, refresh_token):
            raise AuthenticationError("Refresh token has been revoked")

        user = repository.get_user(self.db, user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")
        return self._issue_tokens(user)

    def logout(self, user: User, access_token: str) -> None:
        tokens.delete_refresh_token(user.id)
        tokens.blacklist_access_token(access_token)
        logger.info(f"User {user.id} logged out")

    def update_profile(self, user: User, data: ProfileUpdate) -> UserResponse:
        fields = data.model_dump(exclude_unset=True)
        for required in ("first_name", "last_name"):
            if required in fields:
                value = (fields[required] or "").strip()
                if len(value) < 2:
                    raise ValidationError.for_field(required, "Name must be at least 2 characters")
                fields[required] = value

        for field, value in fields.items():
            setattr(user, field, value)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User {user.id} updated their profile")
        return UserResponse.model_validate(user)

    def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not tokens.verify_password(data.current_password, user.password):
            raise ValidationError.for_field("currentPassword", "Current password is incorrect")
        user.password = tokens.hash_password(data.new_password)
        self.db.commit()
        tokens.delete_refresh_token(user.id)
        logger.info(f"User {user.id} changed their password")
