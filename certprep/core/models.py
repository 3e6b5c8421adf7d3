# certprep/core/models.py
"""
Data models for practice tests, questions and scored sessions.

Models are plain dataclasses. `to_dict()` produces the camelCase JSON
documents used on the wire and in storage; `from_dict()` reads them back.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Optional


class QuestionKind(Enum):
    SINGLE_ANSWER = "single-answer"
    MULTI_ANSWER = "multi-answer"


@dataclass
class Question:
    id: str
    kind: QuestionKind
    prompt: str
    options: List[str]
    correct_answers: List[str]
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "prompt": self.prompt,
            "options": list(self.options),
            "correctAnswers": list(self.correct_answers),
            "explanation": self.explanation,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Question without its answer key, safe for test-taking"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "prompt": self.prompt,
            "options": list(self.options),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        return cls(
            id=data["id"],
            kind=QuestionKind(data["kind"]),
            prompt=data["prompt"],
            options=list(data["options"]),
            correct_answers=list(data["correctAnswers"]),
            explanation=data.get("explanation", ""),
        )


@dataclass
class PracticeTest:
    id: str
    certification_name: str
    source_locator: str
    generated_at: str
    questions: List[Question] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "certificationName": self.certification_name,
            "sourceLocator": self.source_locator,
            "generatedAt": self.generated_at,
            "questionCount": self.question_count,
            "questions": [q.to_dict() for q in self.questions],
        }

    def to_public_dict(self) -> Dict[str, Any]:
        data = self.to_dict()
        data["questions"] = [q.to_public_dict() for q in self.questions]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PracticeTest':
        return cls(
            id=data["id"],
            certification_name=data["certificationName"],
            source_locator=data.get("sourceLocator", ""),
            generated_at=data["generatedAt"],
            questions=[Question.from_dict(q) for q in data.get("questions", [])],
        )


@dataclass
class QuestionDetail:
    question_id: str
    is_correct: bool
    user_answers: List[str]
    correct_answers: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "isCorrect": self.is_correct,
            "userAnswers": list(self.user_answers),
            "correctAnswers": list(self.correct_answers),
        }


@dataclass
class ScoreResult:
    total: int
    correct: int
    incorrect: int
    score: int
    detail: List[QuestionDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "score": self.score,
            "detail": [d.to_dict() for d in self.detail],
        }


@dataclass
class SubmissionSession:
    test_id: str
    answers: Dict[str, List[str]]
    started_at: str
    completed_at: str
    score: int
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "testId": self.test_id,
            "answers": {qid: list(selected) for qid, selected in self.answers.items()},
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "score": self.score,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SubmissionSession':
        return cls(
            test_id=data["testId"],
            answers={qid: list(selected) for qid, selected in data.get("answers", {}).items()},
            started_at=data["startedAt"],
            completed_at=data["completedAt"],
            score=data["score"],
            session_id=data.get("sessionId"),
        )


# ==================== Content pipeline models ====================

@dataclass
class SearchResult:
    title: str
    url: str
    snippet: str

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass
class StructuredContent:
    title: str = ""
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)
    list_items: List[str] = field(default_factory=list)


@dataclass
class ExtractedDocument:
    url: str
    text: str
    structured: StructuredContent


@dataclass
class ContentAnalysis:
    key_topics: List[str]
    concepts: List[str]
    summary: str


@dataclass
class EnrichedDocument:
    """Related search hit, with page text when the fetch succeeded"""
    title: str
    url: str
    snippet: str
    content: Optional[str] = None

    @classmethod
    def from_search_result(cls, result: SearchResult, content: Optional[str] = None) -> 'EnrichedDocument':
        return cls(title=result.title, url=result.url, snippet=result.snippet, content=content)


@dataclass
class EnrichmentOutcome:
    """Per-item result of fetching the full text of a related document"""
    document: EnrichedDocument
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
