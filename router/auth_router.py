from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Annotated

from db.database import get_db
from model.usermodels import User
from Schema.user_schema import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterRequest,
    UserResponse,
)
from service.auth_service import AuthService
from utils.exceptions import AppError, UnhandledError
from utils.responses import success_response
from utils.token import get_bearer_token, get_current_user

db_dependency = Annotated[Session, Depends(get_db)]
user_dependency = Annotated[User, Depends(get_current_user)]

router = APIRouter(prefix="/auth")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: db_dependency):
    """
    Create an employee account and sign it in
    """
    try:
        return success_response(AuthService(db).register(payload), "User registered successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error during registration") from e


@router.post("/login")
async def login(payload: LoginRequest, db: db_dependency):
    try:
        return success_response(AuthService(db).login(payload), "Login successful")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error during login") from e


@router.post("/refresh-token")
async def refresh_token(payload: RefreshTokenRequest, db: db_dependency):
    try:
        return success_response(AuthService(db).refresh(payload.refresh_token), "Token refreshed")
    except AppError:
        raise
    except Exception as e:
        raise UnhandledError("Server error while refreshing token") from e


@router.post("/logout")
async def logout(
    db: db_dependency,
    user: user_dependency,
    token: Annotated[str, Depends(get_bearer_token)],
):
    AuthService(db).logout(user, token)
    return success_response(message="Logged out successfully")


@router.get("/profile")
async def get_profile(user: user_dependency):
    return success_response({"user": UserResponse.model_validate(user)})


@router.put("/profile")
async def update_profile(payload: ProfileUpdate, db: db_dependency, user: user_dependency):
    try:
        updated = AuthService(db).update_profile(user, payload)
        return success_response({"user": updated}, "Profile updated successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while updating profile") from e


@router.put("/change-password")
async def change_password(payload: ChangePasswordRequest, db: db_dependency, user: user_dependency):
    try:
        AuthService(db).change_password(user, payload)
        return success_response(message="Password changed successfully")
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise UnhandledError("Server error while changing password") from e
