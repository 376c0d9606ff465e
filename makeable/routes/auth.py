from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, EmailStr

from makeable.services import auth
from makeable.utils.session import TOKEN_COOKIE, create_access_token, require_user, set_token_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class AdminSetup(BaseModel):
    email: EmailStr
    password: str
    name: str


class UserRegister(BaseModel):
    email: EmailStr
    password: str
    name: str
    role: Literal["admin", "student"] = "student"
    course: Optional[str] = None


class UserLogin(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    profilePicture: Optional[str] = None


class PasswordUpdate(BaseModel):
    newPassword: str


def signed_in(response: Response, user: Dict[str, Any]) -> Dict[str, Any]:
    token = create_access_token(user["id"])
    set_token_cookie(response, token)
    return {"success": True, "user": auth.public_user(user), "token": token}


@router.post("/setup-admin")
def setup_admin(payload: AdminSetup, response: Response):
    """Create an admin account; any number of admins may be created."""
    if not payload.password or not payload.name.strip():
        raise HTTPException(status_code=400, detail="Email, password, and name are required")
    try:
        user = auth.create_user(payload.email, payload.password, payload.name, "admin")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("Created admin %s", user["email"])
    return signed_in(response, user)


@router.post("/register")
def register(payload: UserRegister, response: Response):
    if not payload.password or not payload.name.strip():
        raise HTTPException(status_code=400, detail="Email, password, and name are required")
    if payload.role == "student" and not payload.course:
        raise HTTPException(status_code=400, detail="Course selection is required for students")
    try:
        user = auth.create_user(payload.email, payload.password, payload.name, payload.role, payload.course)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return signed_in(response, user)


@router.post("/login")
def login(payload: UserLogin, response: Response):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = auth.authenticate(payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return signed_in(response, user)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"success": True}


@router.get("/me")
def me(user: Dict[str, Any] = Depends(require_user)):
    return auth.public_user(user)


@router.patch("/profile")
def update_profile(payload: ProfileUpdate, user: Dict[str, Any] = Depends(require_user)):
    updated = auth.update_user(
        user["id"],
        name=payload.name,
        profile_picture=payload.profilePicture,
        clear_picture="profilePicture" in payload.model_fields_set,
    )
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "user": auth.public_user(updated)}


@router.patch("/password")
def update_password(payload: PasswordUpdate, user: Dict[str, Any] = Depends(require_user)):
    if not payload.newPassword:
        raise HTTPException(status_code=400, detail="New password is required")
    if not auth.update_password(user["id"], payload.newPassword):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}
