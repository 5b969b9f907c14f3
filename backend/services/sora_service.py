import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from models.job import ContentRef, GenerationRequest, Outcome, RemoteJobState
from services.retry_policy import RetryPolicy
from utils.env import settings

logger = logging.getLogger("sora_service")

API_PREFIX = "/openai/v1/video/generations"

# Older job responses set result.url to this marker instead of a real URL.
PLACEHOLDER_URL = "available"

SUBMIT_FAILED = "Failed to generate video. Please try again."
STATUS_FAILED = "Failed to check job status."
DOWNLOAD_FAILED = "Failed to download video content."

REMOTE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError)


class MalformedResponseError(ValueError):
    """The provider answered with a body that is not a job object."""


def _first_generation_id(payload: dict) -> Optional[str]:
    generations = payload.get("generations")
    if not isinstance(generations, list) or not generations:
        return None
    first = generations[0]
    if isinstance(first, dict) and first.get("id"):
        return str(first["id"])
    return None


def _result_url(payload: dict) -> Optional[str]:
    result = payload.get("result")
    if not isinstance(result, dict):
        return None
    url = result.get("url")
    if not url or url == PLACEHOLDER_URL:
        return None
    return str(url)


def _error_message(payload: dict) -> Optional[str]:
    error = payload.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    reason = payload.get("failure_reason")
    return str(reason) if reason else None


def parse_job_response(payload: Any, job_id: Optional[str] = None) -> RemoteJobState:
    """Normalize either job response shape into a RemoteJobState.

    A ``generations[0].id`` wins over ``result.url``; the placeholder URL
    counts as absent. Unknown fields are ignored.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"expected a JSON object, got {type(payload).__name__}")

    status = payload.get("status")
    if not isinstance(status, str) or not status:
        raise MalformedResponseError("response has no status")

    resolved_id = payload.get("id") or job_id
    if not resolved_id:
        raise MalformedResponseError("response has no job id")

    content = None
    generation_id = _first_generation_id(payload)
    if generation_id:
        content = ContentRef(kind="generation", value=generation_id)
    else:
        url = _result_url(payload)
        if url:
            content = ContentRef(kind="url", value=url)

    return RemoteJobState(
        job_id=str(resolved_id),
        status=status,
        content=content,
        error=_error_message(payload),
        model=payload.get("model"),
        created_at=None if payload.get("created_at") is None else str(payload["created_at"]),
        expires_at=None if payload.get("expires_at") is None else str(payload["expires_at"]),
    )


class SoraService:
    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.endpoint = (endpoint if endpoint is not None else settings.AZURE_OPENAI_ENDPOINT).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.AZURE_OPENAI_API_KEY
        self.api_version = api_version or settings.AZURE_OPENAI_API_VERSION
        self.model = settings.SORA_MODEL
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds if timeout_seconds is not None else settings.SORA_REQUEST_TIMEOUT_SECONDS
        )
        self.verify_ssl = settings.SORA_VERIFY_SSL
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=settings.SORA_MAX_RETRIES,
            base_delay=settings.SORA_RETRY_BASE_DELAY_SECONDS,
            multiplier=settings.SORA_RETRY_MULTIPLIER,
        )
        logger.info(f"SoraService initialized, endpoint={self.endpoint or '<unset>'}, api_version={self.api_version}")

    def _url(self, path: str) -> str:
        return f"{self.endpoint}{API_PREFIX}{path}"

    def _params(self) -> dict:
        return {"api-version": self.api_version}

    def _headers(self) -> dict:
        return {"Api-key": self.api_key, "Content-Type": "application/json"}

    def _session(self, headers: Optional[dict] = None) -> aiohttp.ClientSession:
        # One session per call; nothing is shared between concurrent jobs.
        return aiohttp.ClientSession(
            headers=headers,
            timeout=self.timeout,
            connector=aiohttp.TCPConnector(ssl=self.verify_ssl),
        )

    @staticmethod
    async def _check(response: aiohttp.ClientResponse, label: str) -> None:
        if response.status >= 400:
            body = await response.text()
            logger.warning(f"[{label}] provider returned {response.status}: {body[:500]}")
            response.raise_for_status()

    def build_request_body(self, request: GenerationRequest) -> dict:
        width, height = request.dimensions()
        return {
            "model": self.model,
            "prompt": request.prompt,
            "width": width,
            "height": height,
            "n_seconds": str(request.duration_seconds),
            "n_variants": "1",
        }

    async def _post_job(self, body: dict) -> RemoteJobState:
        async with self._session(self._headers()) as session:
            async with session.post(self._url("/jobs"), params=self._params(), json=body) as response:
                await self._check(response, "submit")
                payload = await response.json(content_type=None)
        return parse_job_response(payload)

    async def submit(self, request: GenerationRequest) -> Outcome[RemoteJobState]:
        logger.info(
            f"Submitting video job: resolution={request.resolution}, duration={request.duration_seconds}s, "
            f"prompt={request.prompt[:50]!r}"
        )
        try:
            body = self.build_request_body(request)
        except ValueError as exc:
            logger.error(f"Cannot build submit request: {exc}")
            return Outcome.failure(SUBMIT_FAILED, kind="terminal", cause=exc)

        try:
            state = await self.retry_policy.run(lambda: self._post_job(body), label="submit")
        except REMOTE_ERRORS as exc:
            kind = "transient" if self.retry_policy.is_retryable(exc) else "terminal"
            logger.error(f"Error generating video ({kind}): {exc!r}")
            return Outcome.failure(SUBMIT_FAILED, kind=kind, cause=exc)

        logger.info(f"Video generation job created: {state.job_id}, status={state.status}")
        return Outcome.success(state)

    async def poll_status(self, job_id: str) -> Outcome[RemoteJobState]:
        logger.debug(f"poll_status: checking job {job_id}")
        try:
            async with self._session(self._headers()) as session:
                async with session.get(self._url(f"/jobs/{quote(job_id, safe='')}"), params=self._params()) as response:
                    await self._check(response, f"status {job_id}")
                    payload = await response.json(content_type=None)
            state = parse_job_response(payload, job_id=job_id)
        except REMOTE_ERRORS as exc:
            kind = "transient" if self.retry_policy.is_retryable(exc) else "terminal"
            logger.error(f"Error checking status of job {job_id} ({kind}): {exc!r}")
            return Outcome.failure(STATUS_FAILED, kind=kind, cause=exc)

        logger.info(f"Job {job_id} status: {state.status}")
        return Outcome.success(state)

    async def _download(self, url: str, label: str, params: Optional[dict], headers: Optional[dict]) -> Outcome[bytes]:
        try:
            async with self._session(headers) as session:
                async with session.get(url, params=params) as response:
                    await self._check(response, label)
                    data = await response.read()
        except REMOTE_ERRORS as exc:
            kind = "transient" if self.retry_policy.is_retryable(exc) else "terminal"
            logger.error(f"[{label}] download failed ({kind}): {exc!r}")
            return Outcome.failure(DOWNLOAD_FAILED, kind=kind, cause=exc)

        logger.info(f"[{label}] downloaded video content, size: {len(data)} bytes")
        return Outcome.success(data)

    async def fetch_content(self, generation_id: str) -> Outcome[bytes]:
        return await self._download(
            self._url(f"/{quote(generation_id, safe='')}/content/video"),
            label=f"content {generation_id}",
            params=self._params(),
            headers={"Api-key": self.api_key},
        )

    async def fetch_url(self, url: str) -> Outcome[bytes]:
        """Download a legacy ``result.url``; the api key is not sent to it."""
        return await self._download(url, label="result url", params=None, headers=None)
