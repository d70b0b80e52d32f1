"""FastAPI 의존성. 앱 lifespan에서 만든 싱글톤(HTTP 클라이언트·Google Key Fetcher·Redis·기본 캘린더 Provisioner) 주입."""

from typing import Any

from fastapi import Request

import httpx
from pyjwt_key_fetcher import AsyncKeyFetcher

from debrief.services.calendar_service import DefaultCalendarProvisioner


def get_httpx_client(request: Request) -> httpx.AsyncClient:
    """요청마다 새 클라이언트를 만들지 않도록 lifespan 싱글톤 AsyncClient 반환."""
    return request.app.state.httpx_client


def get_google_key_fetcher(request: Request) -> AsyncKeyFetcher:
    """Google JWKS AsyncKeyFetcher 싱글톤."""
    return request.app.state.google_key_fetcher


def get_redis_blocklist(request: Request) -> Any:
    """Blocklist용 Redis 비동기 클라이언트. 미설정 시 None."""
    return getattr(request.app.state, "redis_blocklist_client", None)


def get_calendar_provisioner(request: Request) -> DefaultCalendarProvisioner:
    """
    프로세스당 1개인 Provisioner. in-flight 맵을 요청 간 공유해야 동일 유저 동시 생성이 합쳐진다.
    lifespan 밖(테스트 등)에서 처음 호출되면 그 자리에서 만들어 app.state에 고정.
    """
    provisioner = getattr(request.app.state, "calendar_provisioner", None)
    if provisioner is None:
        provisioner = DefaultCalendarProvisioner()
        request.app.state.calendar_provisioner = provisioner
    return provisioner
