import logging

from utils.env import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

from blacksheep import Application
from rodi import Container

import controllers.videos  # noqa: F401  registers the Videos controller
from services.cost_service import CostEstimationService
from services.sora_service import SoraService
from services.video_job_service import VideoJobService

logger = logging.getLogger("server")

if not settings.AZURE_OPENAI_ENDPOINT or not settings.AZURE_OPENAI_API_KEY:
    logger.warning("AZURE_OPENAI_ENDPOINT / AZURE_OPENAI_API_KEY not set - Sora calls will fail")

services = Container()
services.add_instance(SoraService())
services.add_singleton(VideoJobService)
services.add_singleton(CostEstimationService)

app = Application(services=services)

app.use_cors(
    allow_methods="*",
    allow_origins=settings.FRONTEND_URL,
    allow_headers="*",
)
