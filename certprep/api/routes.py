# certprep/api/routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ..core.config import config
from ..core.utils import ValidationUtils
from ..services.test_service import TestService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_test_service(request: Request) -> TestService:
    """Test service built at startup and held on app.state"""
    return request.app.state.services.test_service


@router.get("/")
async def home():
    """Home endpoint"""
    return {
        "service": config.API_TITLE,
        "version": config.API_VERSION,
        "status": "operational"
    }


@router.get("/api/search")
async def search_certifications(q: Optional[str] = None,
                                test_service: TestService = Depends(get_test_service)):
    """Find study guides for a certification"""
    if not q or not q.strip():
        raise ValueError("Query parameter 'q' is required")

    results = await test_service.search_certifications(q.strip())
    return {"results": [result.to_dict() for result in results]}


@router.post("/api/generate-test")
async def generate_test(request_data: dict,
                        test_service: TestService = Depends(get_test_service)):
    """Generate and store a practice test from a study guide URL"""
    study_guide_url = request_data.get("studyGuideUrl")
    certification_name = request_data.get("certificationName")

    if not study_guide_url or not certification_name:
        raise ValueError("studyGuideUrl and certificationName are required")
    if not isinstance(certification_name, str) or not certification_name.strip():
        raise ValueError("certificationName must be a non-empty string")
    if not ValidationUtils.validate_url(study_guide_url):
        raise ValueError("studyGuideUrl must be an http(s) URL")

    question_count = ValidationUtils.coerce_question_count(
        request_data.get("questionCount"),
        test_service.settings.DEFAULT_QUESTION_COUNT,
        test_service.settings.MAX_QUESTION_COUNT
    )

    try:
        test = await test_service.generate_test(
            study_guide_url.strip(), certification_name.strip(), question_count
        )
    except Exception as e:
        logger.error(f"❌ Test generation failed for {study_guide_url}: {e}")
        raise

    return {"test": test.to_dict()}


@router.get("/api/test/{test_id}")
async def get_test(test_id: str, test_service: TestService = Depends(get_test_service)):
    """Test for taking: answer keys and explanations removed"""
    return {"test": test_service.get_public_test(test_id)}


@router.get("/api/test/{test_id}/answers")
async def get_test_answers(test_id: str, test_service: TestService = Depends(get_test_service)):
    """Full test including answers and explanations"""
    return {"test": test_service.get_test(test_id).to_dict()}


@router.post("/api/test/{test_id}/submit")
async def submit_test(test_id: str, request_data: dict,
                      test_service: TestService = Depends(get_test_service)):
    """Score a submission and store it as a session"""
    return test_service.submit_answers(
        test_id,
        request_data.get("answers"),
        request_data.get("startedAt")
    )


@router.get("/api/test/{test_id}/sessions")
async def list_sessions(test_id: str, test_service: TestService = Depends(get_test_service)):
    """Stored sessions for a test, newest first"""
    sessions = test_service.list_sessions(test_id)
    return {"testId": test_id, "sessions": [session.to_dict() for session in sessions]}
