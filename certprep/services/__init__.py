"""
Business logic services for test generation, scoring and wiring
"""

from .container import build_services, ServiceContainer
from .scoring import score_test
from .test_service import TestService

__all__ = [
    "build_services",
    "ServiceContainer",
    "score_test",
    "TestService"
]
