# 사용자 라우터 (/api/v1/users)
# - 회원가입/로그인/로그아웃/토큰 재발급: 인증 불필요(로그아웃 제외)
# - 나머지는 access 토큰 필요

import os
import shutil
import tempfile
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from ...core.config import settings
from ...models.user import User
from ...schemas.user_schema import (
    ApiResponse,
    ChangePasswordRequest,
    ChannelProfile,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    TokenPair,
    UpdateDetailsRequest,
    UserPublic,
    WatchHistoryEntry,
)
from ...services.auth_service import AuthService
from ...services.graph_service import GraphService
from ..deps import ACCESS_COOKIE, REFRESH_COOKIE, get_auth_service, get_current_user, get_graph_service

router = APIRouter(prefix="/users", tags=["users"])


def _spool(upload: Optional[UploadFile]) -> Optional[str]:
    # 업로드 파일을 임시 파일로 저장하고 경로를 반환 (blob store는 로컬 경로를 받음)
    if upload is None or not upload.filename:
        return None
    _, ext = os.path.splitext(upload.filename)
    fd, path = tempfile.mkstemp(suffix=ext.lower(), dir=settings.UPLOAD_TMP_DIR)
    try:
        with os.fdopen(fd, "wb") as buffer:
            shutil.copyfileobj(upload.file, buffer)
    except OSError:
        _discard(path)
        raise
    return path


def _discard(*paths: Optional[str]) -> None:
    for path in paths:
        if path and os.path.exists(path):
            os.remove(path)


def _set_token_cookies(response: Response, tokens: TokenPair) -> None:
    for name, value in ((ACCESS_COOKIE, tokens.access_token), (REFRESH_COOKIE, tokens.refresh_token)):
        response.set_cookie(name, value, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")


def _clear_token_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[UserPublic], summary="회원가입 (아바타 필수, 커버 이미지 선택)")
async def register(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    display_name: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None),
    service: AuthService = Depends(get_auth_service),
):
    avatar_path = cover_image_path = None
    try:
        avatar_path = await run_in_threadpool(_spool, avatar)
        cover_image_path = await run_in_threadpool(_spool, cover_image)
        user = await service.register(username, email, display_name, password, avatar_path, cover_image_path)
    finally:
        # 업로드 성공/실패와 관계없이 임시 파일은 항상 정리
        _discard(avatar_path, cover_image_path)
    return ApiResponse(status_code=201, data=user, message="User registered successfully")


@router.post("/login", response_model=ApiResponse[LoginResponse], summary="로그인 (토큰을 쿠키와 본문으로 전달)")
async def login(payload: LoginRequest, response: Response, service: AuthService = Depends(get_auth_service)):
    result = await service.login(payload.username, payload.email, payload.password)
    _set_token_cookies(response, result)
    return ApiResponse(data=result, message="User logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict], summary="로그아웃 (refresh 토큰 폐기)")
async def logout(response: Response, user: User = Depends(get_current_user), service: AuthService = Depends(get_auth_service)):
    await service.logout(user)
    _clear_token_cookies(response)
    return ApiResponse(data={}, message="User logged out")


@router.post("/refresh-token", response_model=ApiResponse[TokenPair], summary="Access 토큰 재발급 (refresh 토큰 교체)")
async def refresh_token(request: Request, response: Response, payload: Optional[RefreshRequest] = None,
                        service: AuthService = Depends(get_auth_service)):
    incoming = request.cookies.get(REFRESH_COOKIE) or (payload.refresh_token if payload else None)
    tokens = await service.refresh(incoming)
    _clear_token_cookies(response)
    _set_token_cookies(response, tokens)
    return ApiResponse(data=tokens, message="Access token refreshed")


@router.patch("/change-password", response_model=ApiResponse[dict], summary="비밀번호 변경")
async def change_password(payload: ChangePasswordRequest, user: User = Depends(get_current_user),
                          service: AuthService = Depends(get_auth_service)):
    await service.change_password(user, payload.old_password, payload.new_password)
    return ApiResponse(data={}, message="Password changed successfully")


@router.get("/current-user", response_model=ApiResponse[UserPublic], summary="현재 로그인 사용자")
async def current_user(user: User = Depends(get_current_user)):
    return ApiResponse(data=UserPublic.model_validate(user), message="Current user fetched successfully")


@router.patch("/update-details", response_model=ApiResponse[UserPublic], summary="username/display_name/email 수정")
async def update_details(payload: UpdateDetailsRequest, user: User = Depends(get_current_user),
                         service: AuthService = Depends(get_auth_service)):
    updated = await service.update_details(user, payload.username, payload.display_name, payload.email)
    return ApiResponse(data=updated, message="Account details updated successfully")


@router.patch("/update-avatar", response_model=ApiResponse[UserPublic], summary="아바타 이미지 변경")
async def update_avatar(avatar: Optional[UploadFile] = File(None), user: User = Depends(get_current_user),
                        service: AuthService = Depends(get_auth_service)):
    path = None
    try:
        path = await run_in_threadpool(_spool, avatar)
        updated = await service.update_avatar(user, path)
    finally:
        _discard(path)
    return ApiResponse(data=updated, message="Avatar updated successfully")


@router.patch("/update-coverimage", response_model=ApiResponse[UserPublic], summary="커버 이미지 변경")
async def update_cover_image(cover_image: Optional[UploadFile] = File(None), user: User = Depends(get_current_user),
                             service: AuthService = Depends(get_auth_service)):
    path = None
    try:
        path = await run_in_threadpool(_spool, cover_image)
        updated = await service.update_cover_image(user, path)
    finally:
        _discard(path)
    return ApiResponse(data=updated, message="Cover image updated successfully")


@router.get("/channel/{username}", response_model=ApiResponse[ChannelProfile], summary="채널 프로필 (구독자 수, 구독 여부)")
async def channel_profile(username: str, user: User = Depends(get_current_user),
                          service: GraphService = Depends(get_graph_service)):
    profile = await service.get_channel_profile(username, user.id)
    return ApiResponse(data=profile, message="Channel profile fetched successfully")


@router.get("/history", response_model=ApiResponse[List[WatchHistoryEntry]], summary="시청 기록 (stored order)")
async def watch_history(user: User = Depends(get_current_user), service: GraphService = Depends(get_graph_service)):
    history = await service.get_watch_history(user.id)
    return ApiResponse(data=history, message="Watch history fetched successfully")
