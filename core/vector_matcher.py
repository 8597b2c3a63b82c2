# core/vector_matcher.py
import asyncio
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple
import numpy as np
from config.settings import settings
from core.embeddings_retriever import (
    Encoder,
    build_index,
    embed_query,
    encode_texts,
    similarities,
    top_k,
)
from core.entities import CorpusExample, EmbeddingIndex, VectorMatch
from core.intent_corpus import INTENT_CORPUS
import logging

logger = logging.getLogger(__name__)


class VectorMatcher:
    """
    Nearest-neighbour intent/entity lookup over the labelled corpus.

    Flow:
    - initialize() embeds the corpus once; concurrent callers await the same task.
    - match() embeds the utterance and returns the arg-max exemplar's labels
      when its cosine score clears the threshold.
    - Backend failures leave the matcher "not ready"; callers fall through.
    """

    def __init__(
        self,
        corpus: Sequence[CorpusExample] = INTENT_CORPUS,
        encoder: Encoder = encode_texts,
        threshold: Optional[float] = None,
    ) -> None:
        self._corpus: Tuple[CorpusExample, ...] = tuple(corpus)
        self._encoder = encoder
        self._threshold = (
            settings.SEMANTIC_MATCH_THRESHOLD if threshold is None else threshold
        )
        self._index: Optional[EmbeddingIndex] = None
        self._init_task: Optional[asyncio.Task] = None

    @property
    def is_ready(self) -> bool:
        return self._index is not None

    @property
    def threshold(self) -> float:
        return self._threshold

    async def initialize(self) -> bool:
        if self._index is not None:
            return True
        # shield: one cancelled waiter must not cancel the shared build
        return await asyncio.shield(self._start_build())

    def _start_build(self) -> asyncio.Task:
        if self._init_task is None:
            task = asyncio.create_task(self._build())
            task.add_done_callback(self._forget_failed_build)
            self._init_task = task
        return self._init_task

    def _forget_failed_build(self, task: asyncio.Task) -> None:
        # a failed build is dropped so the next initialize() or match() retries
        if self._init_task is task and (task.cancelled() or not task.result()):
            self._init_task = None

    async def _build(self) -> bool:
        logger.info("intent.corpus.init size=%d", len(self._corpus))
        try:
            index = await asyncio.to_thread(build_index, self._corpus, self._encoder)
        except Exception as e:
            logger.error("intent.corpus.init.error err=%s", type(e).__name__)
            return False
        self._index = index
        logger.info("intent.corpus.ready size=%d", len(index))
        return True

    async def _embed(self, utterance: str) -> Optional[np.ndarray]:
        try:
            return await asyncio.to_thread(
                embed_query, utterance.lower().strip(), self._encoder
            )
        except Exception as e:
            logger.warning("intent.semantic.embed.error err=%s", type(e).__name__)
            return None

    async def match(
        self, utterance: str, threshold: Optional[float] = None
    ) -> Optional[VectorMatch]:
        index = self._index
        if index is None or len(index) == 0:
            if index is None:
                building = self._init_task is not None
                self._start_build()
                logger.info("intent.semantic.not_ready building=%s", building)
            return None

        q = await self._embed(utterance)
        if q is None:
            return None

        limit = self._threshold if threshold is None else threshold
        sims = similarities(index, q)
        best = int(np.argmax(sims))
        score = float(sims[best])
        ex = index.examples[best]

        if score >= limit:
            logger.info(
                "intent.semantic.hit intent=%s entity=%s score=%.3f",
                ex.intent.value,
                ex.entity.value,
                score,
            )
            return VectorMatch(
                intent=ex.intent,
                entity=ex.entity,
                confidence=max(0.0, min(1.0, score)),
                matched_text=ex.utterance,
            )

        logger.info("intent.semantic.miss best=%.3f threshold=%.2f", score, limit)
        return None

    async def top_matches(
        self, utterance: str, n: int = 5
    ) -> List[Tuple[CorpusExample, float]]:
        index = self._index
        if index is None or len(index) == 0:
            return []
        q = await self._embed(utterance)
        if q is None:
            return []
        return [(index.examples[i], score) for i, score in top_k(index, q, k=n)]


@lru_cache(maxsize=1)
def get_vector_matcher() -> VectorMatcher:
    """Process-wide matcher; the corpus index is built once and only read after."""
    return VectorMatcher()
