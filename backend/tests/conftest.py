"""Shared fixtures: a fake Sora job API served by aiohttp's TestServer."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from services.retry_policy import RetryPolicy
from services.sora_service import SoraService

JOBS_PATH = "/openai/v1/video/generations/jobs"


class FakeSoraProvider:
    """Scriptable stand-in for the Azure OpenAI video generation endpoints.

    Responses are ``(status, payload)`` pairs; a ``str`` payload is sent as
    plain text so malformed bodies can be simulated.
    """

    def __init__(self):
        self.requests: list[dict] = []
        self.submit_responses: list[tuple[int, Any]] = []
        self.jobs: dict[str, tuple[int, Any]] = {}
        self.contents: dict[str, bytes] = {}
        self.files: dict[str, bytes] = {}
        self.status_hooks: dict[str, Callable[[], Awaitable[None]]] = {}
        self.base_url = ""

        self.app = web.Application()
        self.app.router.add_post(JOBS_PATH, self.handle_submit)
        self.app.router.add_get(JOBS_PATH + "/{job_id}", self.handle_status)
        self.app.router.add_get(
            "/openai/v1/video/generations/{generation_id}/content/video", self.handle_content
        )
        self.app.router.add_get("/files/{name}", self.handle_file)

    def requests_to(self, path_prefix: str) -> list[dict]:
        return [r for r in self.requests if r["path"].startswith(path_prefix)]

    async def _record(self, request: web.Request) -> None:
        body: Optional[Any] = None
        if request.can_read_body:
            try:
                body = await request.json()
            except ValueError:
                body = await request.text()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "headers": request.headers.copy(),
                "json": body,
            }
        )

    @staticmethod
    def _respond(status: int, payload: Any) -> web.Response:
        if isinstance(payload, str):
            return web.Response(status=status, text=payload)
        return web.json_response(payload, status=status)

    async def handle_submit(self, request: web.Request) -> web.Response:
        await self._record(request)
        if self.submit_responses:
            status, payload = self.submit_responses.pop(0)
        else:
            status, payload = 201, {"id": "job-1", "status": "queued", "model": "sora"}
        return self._respond(status, payload)

    async def handle_status(self, request: web.Request) -> web.Response:
        await self._record(request)
        job_id = request.match_info["job_id"]
        hook = self.status_hooks.get(job_id)
        if hook is not None:
            await hook()
        if job_id not in self.jobs:
            return self._respond(404, {"error": {"code": "NotFound", "message": "job not found"}})
        status, payload = self.jobs[job_id]
        return self._respond(status, payload)

    async def handle_content(self, request: web.Request) -> web.Response:
        await self._record(request)
        generation_id = request.match_info["generation_id"]
        if generation_id not in self.contents:
            return self._respond(404, {"error": {"message": "generation not found"}})
        return web.Response(body=self.contents[generation_id], content_type="video/mp4")

    async def handle_file(self, request: web.Request) -> web.Response:
        await self._record(request)
        name = request.match_info["name"]
        if name not in self.files:
            return web.Response(status=404)
        return web.Response(body=self.files[name], content_type="video/mp4")


@pytest_asyncio.fixture
async def sora_provider():
    provider = FakeSoraProvider()
    server = TestServer(provider.app)
    await server.start_server()
    provider.base_url = str(server.make_url("/")).rstrip("/")
    try:
        yield provider
    finally:
        await server.close()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def retry_policy(sleeps) -> RetryPolicy:
    async def record_sleep(delay: float) -> None:
        sleeps.append(delay)
        await asyncio.sleep(0)

    return RetryPolicy(max_retries=3, base_delay=1.0, multiplier=2.0, sleep=record_sleep)


@pytest.fixture
def sora_service(sora_provider, retry_policy) -> SoraService:
    return SoraService(
        endpoint=sora_provider.base_url,
        api_key="test-key",
        api_version="preview",
        timeout_seconds=5,
        retry_policy=retry_policy,
    )
