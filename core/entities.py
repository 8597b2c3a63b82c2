# core/entities.py
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple
import numpy as np
from model.intent import EntityKind, IntentKind


@dataclass(frozen=True)
class CorpusExample:
    utterance: str
    intent: IntentKind
    entity: EntityKind


@dataclass(frozen=True)
class EmbeddingIndex:
    """
    L2-normalized embedding matrix for cosine similarity search.
    Row i of `embeddings` belongs to `examples[i]`.
    """

    examples: Tuple[CorpusExample, ...]
    embeddings: np.ndarray  # (n, d) float32

    def __len__(self) -> int:
        return len(self.examples)


@dataclass(frozen=True)
class VectorMatch:
    intent: IntentKind
    entity: EntityKind
    confidence: float
    matched_text: str


@dataclass
class ExtractionResult:
    values: Dict[str, Any] = field(default_factory=dict)
    # "regex" | "llm"; llm means the model call succeeded and contributed values
    strategy: str = "regex"
