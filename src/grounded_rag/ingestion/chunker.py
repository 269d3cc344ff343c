"""Text chunking strategies."""

from __future__ import annotations

from collections.abc import Iterator

from langchain_text_splitters import RecursiveCharacterTextSplitter

from grounded_rag.ingestion.models import Chunk

# Largest natural boundary first: paragraph, line, sentence, word, character.
SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


class Segmentation:
    """Lazy, restartable sequence of chunk strings for one text.

    Nothing is split until the sequence is iterated, and every iteration
    re-splits from the start, so the same object can be consumed twice.
    """

    def __init__(self, text: str, splitter: RecursiveCharacterTextSplitter) -> None:
        self._text = text
        self._splitter = splitter

    def __iter__(self) -> Iterator[str]:
        if not self._text.strip():
            return
        for piece in self._splitter.split_text(self._text):
            if piece.strip():
                yield piece


def segment(text: str, chunk_size: int, chunk_overlap: int) -> Segmentation:
    """Split *text* into overlapping chunks along natural boundaries.

    Parameters
    ----------
    text:
        Extracted document text.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Maximum number of characters shared by consecutive chunks.

    Returns
    -------
    Segmentation
        Chunks are exact substrings of *text*: separators stay attached to
        the end of the piece they terminate and whitespace is not stripped,
        so every character of *text* lands in at least one chunk.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    if chunk_overlap < 0:
        raise ValueError(f"chunk_overlap must be >= 0, got {chunk_overlap}")
    if chunk_overlap >= chunk_size:
        raise ValueError(f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})")

    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=SEPARATORS,
        keep_separator="end",
        strip_whitespace=False,
    )
    return Segmentation(text, splitter)


def chunk_document(
    filename: str,
    text: str,
    *,
    chunk_size: int,
    chunk_overlap: int,
) -> list[Chunk]:
    """Segment *text* and number the chunks densely from 0."""
    return [
        Chunk(source=filename, index=index, text=piece)
        for index, piece in enumerate(segment(text, chunk_size, chunk_overlap))
    ]
