"""
Generation — turns retrieved context into a prose answer.

Public API
----------
- :class:`AnswerGenerator` — ``generate(prompt) -> text`` over a chat model.
- :func:`answer_question` — retrieve + generate, with the "no content" short-circuit.
- :func:`build_answer_prompt` — the grounded prompt template.
"""

from grounded_rag.generation.answer import Answer, AnswerGenerator, answer_question
from grounded_rag.generation.prompts import build_answer_prompt

__all__ = [
    "Answer",
    "AnswerGenerator",
    "answer_question",
    "build_answer_prompt",
]
