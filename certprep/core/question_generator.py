# certprep/core/question_generator.py
"""
Turns study content into validated practice questions.

Model output is untrusted: the reply is decoded into plain dicts first, then
each record is checked against the Question invariants before a Question is
built. Invalid records are dropped with a warning and the rest of the batch
is kept; a batch that yields no valid record at all fails with
MalformedGenerationError.
"""

import json
import logging
import random
from typing import List, Dict, Any, Optional, Tuple

from .config import config, Config
from .errors import MalformedGenerationError, ValidationError
from .models import Question, QuestionKind, EnrichedDocument
from .prompts import PromptTemplates, PromptFormatter, SYSTEM_PROMPT
from .utils import generate_question_id, shuffled

logger = logging.getLogger(__name__)

SINGLE_OPTION_COUNTS = (4,)
MULTI_OPTION_COUNTS = (4, 5)
MULTI_CORRECT_COUNTS = (2, 3)

ID_PREFIXES = {
    QuestionKind.SINGLE_ANSWER: "sa",
    QuestionKind.MULTI_ANSWER: "ma",
}


def split_question_count(total: int, single_ratio: float = None) -> Tuple[int, int]:
    """Floor share of single-answer questions, remainder multi-answer"""
    if single_ratio is None:
        single_ratio = config.SINGLE_ANSWER_RATIO
    single = int(total * single_ratio)
    return single, total - single


def extract_json_array(reply: str) -> List[Any]:
    """
    First well-formed JSON array of objects embedded anywhere in the reply.

    Arrays without any object, such as "[1]" in surrounding prose, are
    skipped and the scan continues from the next bracket.
    """
    decoder = json.JSONDecoder()
    position = reply.find("[")
    while position != -1:
        try:
            value, _ = decoder.raw_decode(reply, position)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list) and any(isinstance(item, dict) for item in value):
            return value
        position = reply.find("[", position + 1)

    raise MalformedGenerationError("Completion reply does not contain a JSON array of question objects")


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_record(record: Any, kind: QuestionKind) -> Dict[str, Any]:
    """
    Check one decoded record and resolve its answer indexes to option strings.

    Returns {"prompt", "options", "correct_answers", "explanation"} or raises
    ValidationError naming the first violated rule.
    """
    if not isinstance(record, dict):
        raise ValidationError("record is not an object")

    prompt = record.get("question")
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("question text is missing")

    options = record.get("options")
    if not isinstance(options, list) or not all(isinstance(o, str) and o.strip() for o in options):
        raise ValidationError("options must be a list of non-empty strings")
    options = [o.strip() for o in options]
    if len(set(options)) != len(options):
        raise ValidationError("options contain duplicate text")

    explanation = record.get("explanation")
    if not isinstance(explanation, str) or not explanation.strip():
        raise ValidationError("explanation is missing")

    if kind is QuestionKind.SINGLE_ANSWER:
        if len(options) not in SINGLE_OPTION_COUNTS:
            raise ValidationError(f"expected 4 options, got {len(options)}")
        index = record.get("correctAnswer")
        if not _is_index(index) or not 0 <= index < len(options):
            raise ValidationError(f"correctAnswer {index!r} is not an option index")
        correct = [options[index]]
    else:
        if len(options) not in MULTI_OPTION_COUNTS:
            raise ValidationError(f"expected 4-5 options, got {len(options)}")
        indexes = record.get("correctAnswers")
        if not isinstance(indexes, list) or not all(_is_index(i) for i in indexes):
            raise ValidationError("correctAnswers must be a list of option indexes")
        if any(not 0 <= i < len(options) for i in indexes):
            raise ValidationError(f"correctAnswers {indexes} reference missing options")
        if len(set(indexes)) != len(indexes):
            raise ValidationError("correctAnswers repeat an option")
        if len(indexes) not in MULTI_CORRECT_COUNTS or len(indexes) >= len(options):
            raise ValidationError(f"multi-answer needs 2-3 correct options, got {len(indexes)}")
        correct = [options[i] for i in indexes]

    return {
        "prompt": prompt.strip(),
        "options": options,
        "correct_answers": correct,
        "explanation": explanation.strip(),
    }


def parse_questions(reply: str, kind: QuestionKind) -> List[Question]:
    """Decode a completion reply into validated questions of one kind"""
    records = extract_json_array(reply)

    questions = []
    for position, record in enumerate(records, 1):
        try:
            fields = validate_record(record, kind)
        except ValidationError as e:
            logger.warning(f"⚠️ Dropping {kind.value} record {position}: {e.message}")
            continue

        questions.append(Question(
            id=generate_question_id(ID_PREFIXES[kind]),
            kind=kind,
            prompt=fields["prompt"],
            options=fields["options"],
            correct_answers=fields["correct_answers"],
            explanation=fields["explanation"]
        ))

    if records and not questions:
        raise MalformedGenerationError(f"No valid {kind.value} questions in completion reply")

    logger.info(f"✅ Parsed {len(questions)}/{len(records)} {kind.value} questions")
    return questions


class QuestionGenerator:
    """Builds prompts, calls the completion service and assembles the question list"""

    def __init__(self, ai_service, settings: Config = None, rng: Optional[random.Random] = None):
        self.ai_service = ai_service
        self.settings = settings or config
        self.rng = rng

    async def generate_questions(self, primary_text: str,
                                 supplementary: List[EnrichedDocument],
                                 question_count: int,
                                 certification_name: str = "Microsoft") -> List[Question]:
        """Single-answer and multi-answer batches, shuffled together"""
        corpus = PromptFormatter.compose_corpus(
            primary_text, supplementary, self.settings.MAX_CORPUS_CHARS
        )
        single_count, multi_count = split_question_count(
            question_count, self.settings.SINGLE_ANSWER_RATIO
        )
        logger.info(
            f"🤖 Generating {single_count} single-answer + {multi_count} multi-answer questions "
            f"from {len(corpus)} chars"
        )

        questions: List[Question] = []

        if single_count > 0:
            prompt = PromptTemplates.create_single_answer_prompt(certification_name, corpus, single_count)
            reply = await self.ai_service.complete(SYSTEM_PROMPT, prompt)
            questions.extend(parse_questions(reply, QuestionKind.SINGLE_ANSWER))

        if multi_count > 0:
            prompt = PromptTemplates.create_multi_answer_prompt(certification_name, corpus, multi_count)
            reply = await self.ai_service.complete(SYSTEM_PROMPT, prompt)
            questions.extend(parse_questions(reply, QuestionKind.MULTI_ANSWER))

        if not questions:
            raise MalformedGenerationError("Completion produced no questions")

        return shuffled(questions, self.rng)
