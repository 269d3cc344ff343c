"""Prompt template for grounded answer generation.

Keeping the prompt in one place makes it easy to audit and version.
"""

from __future__ import annotations

ANSWER_SYSTEM = """\
You are a friendly, knowledgeable assistant helping someone understand their documents.

Guidelines:
- Answer naturally and conversationally.
- Keep your answer grounded in the document context below; do not make up facts.
- If the answer has multiple parts, use short bullet points or numbered steps.
- If the context does not contain the answer, say so and suggest rephrasing
  or checking another document.
- Explain in your own words rather than repeating raw text verbatim.
"""


def build_answer_prompt(context: str, question: str) -> str:
    """Return the single-string prompt handed to the answer generator."""
    return (
        f"{ANSWER_SYSTEM}\n"
        f"Context from the documents:\n{context}\n\n"
        f"Question: {question}\n\n"
        "Answer:"
    )
