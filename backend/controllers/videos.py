# Video generation API: submit, poll, download, cost estimates
import logging
import re
from datetime import datetime

from blacksheep import Content, Request, Response, json
from blacksheep.server.controllers import APIController, get, post

from models.job import GenerationRequest, Resolution
from services.cost_service import CostEstimationService
from services.video_job_service import VideoJobService

logger = logging.getLogger("videos_controller")

MAX_PROMPT_LENGTH = 1000
MIN_DURATION = 1
MAX_DURATION = 20
# 1920x1080 is only offered up to 10 seconds.
LANDSCAPE_1080_MAX_DURATION = 10


def validate_generation_input(prompt, resolution, duration) -> list[str]:
    errors = []
    if prompt is not None and not isinstance(prompt, str):
        errors.append("Prompt must be text")
    elif not prompt or not prompt.strip():
        errors.append("Prompt cannot be empty")
    elif len(prompt) > MAX_PROMPT_LENGTH:
        errors.append(f"Prompt cannot exceed {MAX_PROMPT_LENGTH} characters")

    known_resolution = Resolution.from_value(resolution) if isinstance(resolution, str) else None
    if known_resolution is None:
        errors.append(f"Resolution must be one of: {', '.join(r.value for r in Resolution)}")

    if not isinstance(duration, int) or isinstance(duration, bool):
        errors.append("Duration must be a whole number of seconds")
    elif not MIN_DURATION <= duration <= MAX_DURATION:
        errors.append(f"Duration must be between {MIN_DURATION} and {MAX_DURATION} seconds")
    elif known_resolution is Resolution.LANDSCAPE_1080 and duration > LANDSCAPE_1080_MAX_DURATION:
        errors.append(f"1920x1080 videos are limited to {LANDSCAPE_1080_MAX_DURATION} seconds")
    return errors


def download_filename(job_id: str) -> str:
    safe_id = re.sub(r"[^A-Za-z0-9_-]", "", job_id or "") or "job"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"sora_video_{safe_id}_{timestamp}.mp4"


def _coerce_duration(value):
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return value


class Videos(APIController):
    def __init__(self, video_job_service: VideoJobService, cost_service: CostEstimationService):
        self.video_job_service = video_job_service
        self.cost_service = cost_service

    @classmethod
    def route(cls):
        return "/api"

    @get("/health")
    async def health_check(self):
        return json({"status": "ok"})

    @post("/generate")
    async def generate_video(self, request: Request) -> Response:
        try:
            body = await request.json()
        except Exception as exc:
            logger.info(f"/generate: unreadable JSON body: {exc}")
            body = None
        if not isinstance(body, dict):
            return json({"errors": ["Request body must be a JSON object"]}, status=400)

        prompt = body.get("prompt")
        resolution = body.get("resolution")
        if isinstance(resolution, str):
            resolution = resolution.strip()
        duration = _coerce_duration(body.get("duration", body.get("duration_seconds")))

        errors = validate_generation_input(prompt, resolution, duration)
        if errors:
            logger.info(f"/generate: rejected request: {errors}")
            return json({"errors": errors}, status=400)

        generation_request = GenerationRequest(
            prompt=prompt.strip(),
            resolution=resolution,
            duration_seconds=duration,
        )
        outcome = await self.video_job_service.request_generation(generation_request)
        if not outcome.ok:
            return json({"error": outcome.message}, status=502)

        estimate = self.cost_service.estimate(resolution, duration)
        logger.info(f"/generate: job {outcome.value.job_id} started, estimated cost ${estimate.cost}")
        return json(
            {
                "job_id": outcome.value.job_id,
                "status": outcome.value.status,
                "message": "Video generation started successfully!",
                "estimate": estimate.to_dict(),
            }
        )

    @get("/status/{job_id}")
    async def get_status(self, job_id: str) -> Response:
        outcome = await self.video_job_service.check_status(job_id)
        if not outcome.ok:
            return json({"error": outcome.message}, status=502)
        return json(outcome.value.to_dict())

    @get("/download/{job_id}")
    async def download_video(self, job_id: str) -> Response:
        logger.info(f"Download request for job: {job_id}")
        outcome = await self.video_job_service.download(job_id)
        if not outcome.ok:
            status = 409 if outcome.kind == "not_ready" else 502
            return json({"error": outcome.message}, status=status)

        filename = download_filename(job_id)
        logger.info(f"Prepared download for job {job_id}: {len(outcome.value)} bytes")
        return Response(
            200,
            [(b"Content-Disposition", f'attachment; filename="{filename}"'.encode())],
            Content(b"video/mp4", outcome.value),
        )

    @get("/estimate")
    async def get_estimate(self, resolution: str = "", duration: int = 0) -> Response:
        estimate = self.cost_service.estimate(resolution or None, duration)
        payload = estimate.to_dict()
        payload["breakdown"] = self.cost_service.cost_breakdown(resolution or None, duration)
        return json(payload)

    @get("/estimate/range")
    async def get_estimate_range(self, resolution: str = "", duration: int = 0) -> Response:
        return json(self.cost_service.estimate_range(resolution or None, duration).to_dict())
