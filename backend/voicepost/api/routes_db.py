# backend/voicepost/api/routes_db.py
"""
This module defines the FastAPI router for account and saved-text operations.

It includes endpoints for:
- Signup / login (issuing bearer tokens) and the current user
- Saving, listing, reading and deleting a user's saved texts

Every saved-text route is scoped to the user resolved from the bearer token.
A saved text owned by someone else is reported as not found, never forbidden,
so the API does not reveal that it exists.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from voicepost.api.dependencies import get_store
from voicepost.auth import create_access_token, get_current_user, get_current_user_optional
from voicepost.models import (
    AuthResponse,
    LoginRequest,
    SavedText,
    SavedTextType,
    SaveTextPayload,
    SignupRequest,
    User,
    UserPublic,
)
from voicepost.storage.base import ResultStore

logger = logging.getLogger(__name__)

# Initialize router for all account-related API endpoints
router = APIRouter()

# Path values of GET /saved-texts/{param} that are type filters rather than ids
TYPE_FILTERS = {"all": None, "polish": "polish", "translate": "translate"}


@router.post("/auth/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, request: Request, store: ResultStore = Depends(get_store)):
    """
    Register a new user account.

    Steps:
    1. Validate the payload (username length, email format, matching passwords).
    2. Create the user; the store rejects a taken username or email before writing.
    3. Issue a bearer token for the new account.

    Returns:
    - AuthResponse: access token and the public user fields.

    Raises:
    - 409: Username or email already registered (UsernameTakenError / EmailTakenError).
    """
    user = await store.create_user(payload.username, payload.password, email=payload.email)
    token = create_access_token(user, request.app.state.settings)
    return AuthResponse(access_token=token, user=UserPublic.from_user(user))


@router.post("/auth/login", response_model=AuthResponse)
async def login(payload: LoginRequest, request: Request, store: ResultStore = Depends(get_store)):
    """
    Exchange username and password for a bearer token.

    Raises:
    - HTTPException(401): Unknown username or wrong password (same message for both).
    """
    user = await store.get_user_by_username(payload.username)
    if user is None or not await store.validate_password(user, payload.password):
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = create_access_token(user, request.app.state.settings)
    return AuthResponse(access_token=token, user=UserPublic.from_user(user))


@router.get("/auth/me", response_model=UserPublic)
async def me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user."""
    return UserPublic.from_user(current_user)


@router.post("/saved-texts", response_model=SavedText, status_code=status.HTTP_201_CREATED)
async def save_text(
    payload: SaveTextPayload,
    current_user: User = Depends(get_current_user),
    store: ResultStore = Depends(get_store),
):
    """
    Save a polish or translate result for the authenticated user.

    Parameters:
    - payload (SaveTextPayload): texts, languages and format of the artifact.
    - current_user: owner of the new row.
    """
    saved = await store.create_saved_text(payload.for_user(current_user.id))
    logger.info("User %s saved %s text %s", current_user.id, saved.type, saved.id)
    return saved


@router.get("/saved-texts", response_model=List[SavedText])
async def list_saved_texts(
    type: Optional[SavedTextType] = Query(None),
    current_user: Optional[User] = Depends(get_current_user_optional),
    store: ResultStore = Depends(get_store),
):
    """
    List the caller's saved texts, newest first.

    Guests get an empty list instead of an error.
    """
    if current_user is None:
        return []
    return await store.get_saved_texts_by_user(current_user.id, type)


@router.get("/saved-texts/{param}")
async def get_saved_text(
    param: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    store: ResultStore = Depends(get_store),
):
    """
    Either a type filter ("all", "polish", "translate") or a saved text id.

    Returns:
    - list[SavedText] for a type filter (empty for guests)
    - SavedText for an id owned by the caller

    Raises:
    - HTTPException(404): Unknown id, or an id owned by another user.
    """
    if param in TYPE_FILTERS:
        if current_user is None:
            return []
        return await store.get_saved_texts_by_user(current_user.id, TYPE_FILTERS[param])

    if current_user is None:
        raise HTTPException(status_code=404, detail="Saved text not found")
    saved = await store.get_saved_text(param, current_user.id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved text not found")
    return saved


@router.delete("/saved-texts/{saved_text_id}")
async def delete_saved_text(
    saved_text_id: str,
    current_user: User = Depends(get_current_user),
    store: ResultStore = Depends(get_store),
):
    """
    Delete one of the caller's saved texts.

    Raises:
    - HTTPException(404): Unknown id, or an id owned by another user.
    """
    deleted = await store.delete_saved_text(saved_text_id, current_user.id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Saved text not found")
    return {"message": "Saved text deleted"}
