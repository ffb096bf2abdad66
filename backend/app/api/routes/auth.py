"""Authentication endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.dependencies import client_ip, get_db, read_session_token
from app.core.security import SessionSigner
from app.schemas.auth import LoginRequest, MessageResponse, RegistrationRequest
from app.schemas.user import UserCreate, UserRead, UserSummary
from app.services import activity_log as activity_service
from app.services import sessions as session_service
from app.services.users import authenticate_user, create_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=SessionSigner().dumps(token),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=settings.session_ttl_hours * 3600,
    )


def _clear_session_cookie(response: Response) -> None:
    response.delete_cookie(get_settings().session_cookie_name)


@router.post("/registration", response_model=UserSummary, status_code=status.HTTP_201_CREATED)
async def register_user(payload: RegistrationRequest, session: AsyncSession = Depends(get_db)) -> UserSummary:
    user = await create_user(
        session,
        UserCreate(
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
        ),
    )
    await session.commit()
    return UserSummary.model_validate(user)


@router.post("/login", response_model=UserSummary)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> UserSummary:
    user = await authenticate_user(session, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user_session = await session_service.create_session(
        session, user, ip_address=client_ip(request), user_agent=request.headers.get("user-agent")
    )
    await activity_service.create_from_request(session, request, user.id, "LOGIN")
    await session.commit()
    _set_session_cookie(response, user_session.token)
    return UserSummary.model_validate(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> MessageResponse:
    token = read_session_token(request)
    if token:
        user_session = await session_service.get_session_by_token(session, token)
        if user_session:
            await activity_service.create_from_request(session, request, user_session.user_id, "LOGOUT")
            await session_service.delete_session(session, token)
        await session.commit()
    _clear_session_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserRead)
async def get_current_user_info(request: Request, response: Response, session: AsyncSession = Depends(get_db)):
    token = read_session_token(request)
    context = await session_service.validate_session(session, token) if token else None
    if not context:
        detail = "Invalid or expired session" if request.cookies.get(get_settings().session_cookie_name) else "Not authenticated"
        failure = JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": detail})
        _clear_session_cookie(failure)
        return failure

    await session_service.extend_session(session, token)
    await session.commit()
    _set_session_cookie(response, token)
    return UserRead.model_validate(context.user)
