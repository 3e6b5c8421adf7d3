"""
Certification practice tests generated from study guides.

Pipeline: extract study guide text, optionally enrich it with related web
content, generate single- and multi-answer questions with a completion
provider, store the test and score submitted attempts.
"""

__version__ = "1.0.0"
__description__ = "Certification practice test generator"

from .core.config import config

__all__ = ["config"]
