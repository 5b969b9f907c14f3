import logging

from models.job import GenerationRequest, Outcome, RemoteJobState
from services.sora_service import SoraService

logger = logging.getLogger("video_job_service")

NOT_READY = "Video is not ready for download yet."
NO_CONTENT = "Video finished but no downloadable content was returned."


class VideoJobService:
    """Entry points used by the controllers. Never raises; every call
    returns an Outcome."""

    def __init__(self, sora_service: SoraService):
        self.sora_service = sora_service

    async def request_generation(self, request: GenerationRequest) -> Outcome[RemoteJobState]:
        return await self.sora_service.submit(request)

    async def check_status(self, job_id: str) -> Outcome[RemoteJobState]:
        return await self.sora_service.poll_status(job_id)

    async def download(self, job_id: str) -> Outcome[bytes]:
        status = await self.check_status(job_id)
        if not status.ok:
            return Outcome.failure(status.message or NOT_READY, kind=status.kind or "terminal", cause=status.cause)

        state = status.value
        if not state.is_terminal_success:
            logger.warning(f"Video not ready for download - job: {job_id}, status: {state.status}")
            return Outcome.failure(NOT_READY, kind="not_ready")

        if state.generation_id:
            logger.info(f"[{job_id}] downloading by generation id {state.generation_id}")
            return await self.sora_service.fetch_content(state.generation_id)

        if state.video_url:
            logger.info(f"[{job_id}] downloading from direct result url")
            return await self.sora_service.fetch_url(state.video_url)

        logger.error(f"Job {job_id} reports {state.status} but has no generation id or result url")
        return Outcome.failure(NO_CONTENT, kind="data_integrity")
