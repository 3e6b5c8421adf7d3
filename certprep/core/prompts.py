# certprep/core/prompts.py
from typing import List

from .config import config
from .models import EnrichedDocument

SYSTEM_PROMPT = (
    "You are an expert at creating certification exam practice questions. "
    "Always respond with valid JSON only."
)


class PromptTemplates:
    """Centralized prompt template management"""

    @staticmethod
    def create_single_answer_prompt(certification_name: str, content: str, question_count: int) -> str:
        """Prompt for questions with exactly one correct option"""
        return f"""You are creating practice test questions for the {certification_name} certification exam. Based on the following content, generate {question_count} high-quality multiple-choice questions.

Each question should:
- Have exactly 4 answer options
- Have exactly ONE correct answer
- Be realistic and similar to actual certification exam questions
- Test understanding of concepts, not just memorization
- Include a clear explanation for why the correct answer is right

Format your response as a JSON array with this structure:
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": 0,
    "explanation": "Explanation of why this answer is correct"
  }}
]

"correctAnswer" is the zero-based index of the correct option. All option texts within a question must be different.

CONTENT TO USE:
{content}

Generate exactly {question_count} questions. Return ONLY the JSON array, no other text."""

    @staticmethod
    def create_multi_answer_prompt(certification_name: str, content: str, question_count: int) -> str:
        """Prompt for select-all-that-apply questions"""
        return f"""You are creating practice test questions for the {certification_name} certification exam. Based on the following content, generate {question_count} high-quality multiple-select questions (select all that apply).

Each question should:
- Have 4 or 5 answer options
- Have 2 or 3 correct answers (never just one, never all of the options)
- Be realistic and similar to actual certification exam questions
- Test understanding of concepts, not just memorization
- Include a clear explanation for why the correct answers are right

Format your response as a JSON array with this structure:
[
  {{
    "question": "Question text here? (Select all that apply)",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswers": [0, 2],
    "explanation": "Explanation of why these answers are correct"
  }}
]

"correctAnswers" holds the zero-based indexes of the correct options. All option texts within a question must be different.

CONTENT TO USE:
{content}

Generate exactly {question_count} questions. Return ONLY the JSON array, no other text."""


class PromptFormatter:
    """Utility class for formatting prompt inputs"""

    @staticmethod
    def compose_corpus(primary_text: str, supplementary: List[EnrichedDocument],
                       max_chars: int = None) -> str:
        """Study guide text plus labeled related content, cut to the input budget"""
        if max_chars is None:
            max_chars = config.MAX_CORPUS_CHARS

        sections = [f"STUDY GUIDE CONTENT:\n{primary_text.strip()}"]

        if supplementary:
            blocks = []
            for doc in supplementary:
                block = f"{doc.title}\n{doc.snippet}"
                if doc.content:
                    block += f"\n{doc.content}"
                blocks.append(block)
            sections.append("ADDITIONAL WEB CONTENT:\n" + "\n\n---\n\n".join(blocks))

        return PromptFormatter.truncate("\n\n".join(sections), max_chars)

    @staticmethod
    def truncate(text: str, max_chars: int) -> str:
        if len(text) <= max_chars:
            return text
        return text[:max_chars]
