# certprep/services/container.py
import logging
from dataclasses import dataclass
from typing import Optional

from ..core.ai_services import AIService
from ..core.config import config, Config
from ..core.content_analyzer import ContentAnalyzer
from ..core.content_extractor import ContentExtractor
from ..core.database import create_repository
from ..core.question_generator import QuestionGenerator
from ..core.search_service import SearchService
from .test_service import TestService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Service handles built once at startup and shared by every request"""
    settings: Config
    extractor: ContentExtractor
    search_service: Optional[SearchService]
    ai_service: AIService
    repository: object
    test_service: TestService

    def health_check(self):
        """Test service health plus the completion provider's"""
        health = self.test_service.health_check()
        health["ai_service"] = self.ai_service.health_check()
        return health

    async def close(self):
        try:
            await self.extractor.close()
            if self.search_service is not None:
                await self.search_service.close()
            self.ai_service.close()
        finally:
            self.repository.close()
        logger.info("✅ Services closed")


def build_services(settings: Config = None) -> ServiceContainer:
    """Construct every service handle from configuration"""
    settings = settings or config

    extractor = ContentExtractor(settings)
    search_service = SearchService(settings) if settings.SEARCH_ENABLED else None
    if search_service is None:
        logger.info("🔍 BING_SEARCH_API_KEY not set, search and enrichment disabled")

    ai_service = AIService(settings)
    repository = create_repository(settings)

    test_service = TestService(
        extractor=extractor,
        analyzer=ContentAnalyzer(),
        search_service=search_service,
        generator=QuestionGenerator(ai_service, settings),
        repository=repository,
        settings=settings
    )

    logger.info(f"✅ Services ready (provider: {settings.COMPLETION_PROVIDER}, storage: {settings.STORAGE_BACKEND})")
    return ServiceContainer(
        settings=settings,
        extractor=extractor,
        search_service=search_service,
        ai_service=ai_service,
        repository=repository,
        test_service=test_service
    )
