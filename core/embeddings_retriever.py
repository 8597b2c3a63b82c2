# core/embeddings_retriever.py
from functools import lru_cache
from typing import Callable, List, Sequence, Tuple
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from core.entities import CorpusExample, EmbeddingIndex
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

# texts -> (n, d) float32, rows L2-normalized
Encoder = Callable[[Sequence[str]], np.ndarray]


@lru_cache(maxsize=1)
def _load_model() -> SentenceTransformer:
    """Loaded on first encode; the first call may download weights."""
    name = settings.EMBEDDING_MODEL_NAME
    with timed(logger, "embed.model.load", model=name):
        return SentenceTransformer(name, device="cpu")


def encode_texts(texts: Sequence[str], batch_size: int = 64) -> np.ndarray:
    """
    Default encoder: sentence-transformers with normalized output.
    """
    model = _load_model()
    vecs = model.encode(
        list(texts),
        batch_size=batch_size,
        convert_to_numpy=True,
        normalize_embeddings=True,
    )
    return vecs.astype(np.float32, copy=False)


def _normalize_rows(vecs: np.ndarray) -> np.ndarray:
    vecs = np.atleast_2d(np.asarray(vecs, dtype=np.float32))
    norms = np.linalg.norm(vecs, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return vecs / norms


def build_index(
    examples: Sequence[CorpusExample], encoder: Encoder = encode_texts
) -> EmbeddingIndex:
    """
    Encode every exemplar utterance into an EmbeddingIndex.
    Rows are re-normalized so injected encoders need not normalize.
    """
    with timed(logger, "embed.encode", n=len(examples)):
        emb = _normalize_rows(encoder([ex.utterance for ex in examples]))
    logger.info("embed.index n=%d d=%d", emb.shape[0], emb.shape[1] if emb.size else 0)
    return EmbeddingIndex(examples=tuple(examples), embeddings=emb)


def embed_query(query: str, encoder: Encoder = encode_texts) -> np.ndarray:
    return _normalize_rows(encoder([query]))[0]


def similarities(index: EmbeddingIndex, query_vec: np.ndarray) -> np.ndarray:
    """
    Cosine similarity of the query against every row (both sides unit length).
    """
    return (index.embeddings @ query_vec).astype(float)


def top_k(index: EmbeddingIndex, query_vec: np.ndarray, k: int = 5) -> List[Tuple[int, float]]:
    """
    Return top-k (row, cosine_sim) for the query vector against the index.
    """
    sims = similarities(index, query_vec)
    kk = max(1, min(k, sims.shape[0]))
    top_idx = np.argpartition(sims, -kk)[-kk:]
    return sorted(
        ((int(i), float(sims[int(i)])) for i in top_idx),
        key=lambda t: t[1],
        reverse=True,
    )
