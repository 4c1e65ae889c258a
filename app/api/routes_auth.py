"""
Authentication API routes
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.models import Profile
from app.schemas.company import SignInRequest, SignUpRequest, UserResponse
from app.services.auth_service import AuthError, AuthService
from app.utils.responses import success_response, error_response
from app.utils.security import get_current_user

router = APIRouter()

@router.post("/signup")
async def sign_up(payload: SignUpRequest, db: Session = Depends(get_db)):
    """Create an account and sign it in"""
    try:
        profile = AuthService.sign_up(db, payload.email, payload.password, payload.full_name)
    except AuthError as e:
        return error_response(message=str(e), error_code="signup_failed", status_code=400)

    data = {"user": UserResponse.model_validate(profile).model_dump()}
    if settings.USE_FIREBASE:
        # The browser signs in with the Firebase SDK afterwards
        return success_response(message="Account created", data=data, status_code=201)

    token = AuthService.issue_token(profile)
    response = success_response(message="Account created", data={**data, "access_token": token}, status_code=201)
    response.set_cookie(settings.SESSION_COOKIE_NAME, token, max_age=settings.SESSION_MAX_AGE, httponly=True, samesite="lax")
    return response

@router.post("/signin")
async def sign_in(payload: SignInRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a session token"""
    try:
        token = AuthService.sign_in(db, payload.email, payload.password)
    except AuthError as e:
        return error_response(message=str(e), error_code="signin_failed", status_code=401)

    response = success_response(message="Signed in", data={"access_token": token, "token_type": "bearer"})
    response.set_cookie(settings.SESSION_COOKIE_NAME, token, max_age=settings.SESSION_MAX_AGE, httponly=True, samesite="lax")
    return response

@router.post("/signout")
async def sign_out():
    response = success_response(message="Signed out")
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response

@router.get("/me")
async def me(user: Profile = Depends(get_current_user)):
    return success_response(message="Current user", data=UserResponse.model_validate(user).model_dump())
