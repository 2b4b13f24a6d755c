"""Term-frequency vectors and cosine-similarity search over chunks."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence

import numpy as np
from tqdm import tqdm

from .schemas import Chunk, SearchResult


logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3

_TOKEN_RE = re.compile(r"\w+")


def tokenize(text: str) -> List[str]:
    """Lowercase text and split it into runs of word characters."""
    return _TOKEN_RE.findall(text.lower())


def build_vocabulary(tokenized_docs: Sequence[Sequence[str]]) -> Dict[str, int]:
    """Assign dense indices to tokens in first-seen order."""
    vocabulary: Dict[str, int] = {}
    for tokens in tokenized_docs:
        for token in tokens:
            if token not in vocabulary:
                vocabulary[token] = len(vocabulary)
    return vocabulary


def term_vector(tokens: Sequence[str], vocabulary: Dict[str, int]) -> np.ndarray:
    """Count vocabulary tokens; tokens outside the vocabulary are dropped."""
    vector = np.zeros(len(vocabulary), dtype=np.int64)
    for token in tokens:
        token_index = vocabulary.get(token)
        if token_index is not None:
            vector[token_index] += 1
    return vector


def cosine_similarity(vectors: np.ndarray, query: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of each row of `vectors` against `query`.

    A row scores 0 when either it or the query is all zeros. A single 1-D
    vector is treated as one row.
    """
    matrix = np.atleast_2d(vectors)
    denom = np.linalg.norm(matrix, axis=1) * float(np.linalg.norm(query))
    scores = np.zeros(matrix.shape[0], dtype=np.float64)
    np.divide(matrix @ query, denom, out=scores, where=denom > 0)
    return scores


class TextVectorIndex:
    """
    Dense term-frequency index over one chunk collection.

    The vocabulary and vectors are fixed at build time; queries never add
    tokens. A different collection needs a new index.
    """

    def __init__(self, chunks: List[Chunk], vocabulary: Dict[str, int], vectors: np.ndarray):
        self.chunks = chunks
        self.vocabulary = vocabulary
        self.vectors = vectors

    @classmethod
    def build(cls, chunks: List[Chunk], show_progress: bool = False) -> "TextVectorIndex":
        """
        Build the vocabulary and one term-frequency vector per chunk.

        Args:
            chunks: Validated chunks, in retrieval order
            show_progress: Show a tqdm progress bar while tokenizing

        Returns:
            TextVectorIndex over the given chunks
        """
        tokenized_docs = [
            tokenize(chunk.text)
            for chunk in tqdm(chunks, desc="Tokenizing chunks", disable=not show_progress)
        ]
        vocabulary = build_vocabulary(tokenized_docs)

        vectors = np.zeros((len(chunks), len(vocabulary)), dtype=np.int64)
        for row, tokens in enumerate(tokenized_docs):
            for token in tokens:
                vectors[row, vocabulary[token]] += 1

        logger.info("Built index: chunks=%d, vocabulary=%d", len(chunks), len(vocabulary))
        return cls(chunks=chunks, vocabulary=vocabulary, vectors=vectors)

    def __len__(self) -> int:
        return len(self.chunks)

    def query_vector(self, query: str) -> np.ndarray:
        return term_vector(tokenize(query), self.vocabulary)

    def score(self, query: str, top_k: int = DEFAULT_TOP_K) -> List[SearchResult]:
        """
        Rank chunks by cosine similarity to the query.

        Only chunks with a positive score are returned, best first; equal
        scores keep collection order. At most top_k results.
        """
        if not query.strip() or not self.chunks:
            return []

        query_vec = self.query_vector(query)
        if not query_vec.any():
            return []

        scores = cosine_similarity(self.vectors, query_vec)

        order = np.argsort(-scores, kind="stable")
        results: List[SearchResult] = []
        for chunk_index in order[:max(top_k, 0)]:
            score = float(scores[chunk_index])
            if score <= 0:
                break
            results.append(
                SearchResult(
                    chunk_index=int(chunk_index),
                    chunk=self.chunks[chunk_index],
                    score=score,
                )
            )
        return results
