"""
Multinomial Naive Bayes Text Classifier

Bag-of-words Naive Bayes with Laplace (add-one) smoothing, used to classify
short clinical texts such as alert titles and medical-record summaries.

Two objects split the lifecycle:
- TextClassifier: mutable, append-only trainer. Training must be serialised
  by the caller (normally done once at process startup).
- ClassifierModel: immutable snapshot taken after training. Safe to share
  between threads and to predict from concurrently.

Label enumeration order is the insertion order of each label's first
training call; exact score ties in the arg-max go to the earliest label.
"""
from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from careinsight.utils import get_logger, NoTrainedLabelsError

logger = get_logger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase, blank out non-alphanumerics, split on whitespace."""
    return _NON_ALNUM_RE.sub(" ", (text or "").lower()).split()


@dataclass(frozen=True)
class ClassificationResult:
    """Winning label plus the full probability distribution over labels."""
    label: str
    scores: Dict[str, float] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.scores

    def to_dict(self) -> Dict[str, object]:
        return {"label": self.label, "scores": dict(self.scores)}


EMPTY_RESULT = ClassificationResult(label="", scores={})


@dataclass(frozen=True)
class ClassifierModel:
    """
    Immutable trained Naive Bayes model.

    Invariant: total_docs == sum(label_counts.values()).
    """
    label_counts: Mapping[str, int]
    token_counts_by_label: Mapping[str, Mapping[str, int]]
    vocabulary: FrozenSet[str]
    total_docs: int
    name: str = "classifier"

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.label_counts)

    @property
    def is_trained(self) -> bool:
        return bool(self.label_counts)

    def log_scores(self, tokens: List[str]) -> Dict[str, float]:
        """Unnormalised log-posterior per label for an already tokenized text."""
        # Empty vocabulary (labels trained on empty texts) smooths over 1, not 0
        vocab_size = len(self.vocabulary) or 1
        scores: Dict[str, float] = {}

        for label, count in self.label_counts.items():
            bucket = self.token_counts_by_label.get(label, {})
            token_total = sum(bucket.values())
            denominator = token_total + vocab_size

            score = math.log(count / self.total_docs)
            for token in tokens:
                score += math.log((bucket.get(token, 0) + 1) / denominator)
            scores[label] = score

        return scores

    def predict(self, text: Optional[str]) -> ClassificationResult:
        """
        Classify a text.

        Returns the empty-label result when no label has been trained.
        """
        if not self.label_counts:
            logger.debug(f"{self.name}: predict called on untrained model")
            return EMPTY_RESULT

        tokens = tokenize(text)
        log_scores = self.log_scores(tokens)
        labels = list(log_scores)

        # Stable softmax: shift by the max before exponentiating
        raw = np.array([log_scores[label] for label in labels], dtype=float)
        weights = np.exp(raw - raw.max())
        denom = weights.sum() or 1.0
        probabilities = weights / denom

        # np.argmax returns the first maximum, i.e. earliest-trained label on ties
        best = labels[int(np.argmax(probabilities))]
        scores = {label: float(p) for label, p in zip(labels, probabilities)}

        logger.debug(
            f"{self.name}: {len(tokens)} token(s) → {best} "
            f"({scores[best]:.3f})"
        )
        return ClassificationResult(label=best, scores=scores)

    def predict_strict(self, text: Optional[str]) -> ClassificationResult:
        """Like predict(), but an untrained model raises NoTrainedLabelsError."""
        if not self.label_counts:
            raise NoTrainedLabelsError(classifier=self.name)
        return self.predict(text)


class TextClassifier:
    """
    Append-only Naive Bayes trainer.

    Not thread-safe while training. Take a snapshot() once training is done
    and hand the immutable ClassifierModel to whatever predicts.
    """

    def __init__(self, name: str = "classifier"):
        self.name = name
        self._label_counts: Dict[str, int] = {}
        self._token_counts: Dict[str, Counter] = {}
        self._vocabulary: set = set()
        self._total_docs = 0
        self._snapshot: Optional[ClassifierModel] = None

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self._label_counts)

    @property
    def is_trained(self) -> bool:
        return bool(self._label_counts)

    @property
    def total_docs(self) -> int:
        return self._total_docs

    @property
    def vocabulary_size(self) -> int:
        return len(self._vocabulary)

    def train(self, label: str, text: Optional[str]) -> None:
        """Add one labelled document to the counts."""
        tokens = tokenize(text)
        self._total_docs += 1
        self._label_counts[label] = self._label_counts.get(label, 0) + 1
        bucket = self._token_counts.setdefault(label, Counter())
        bucket.update(tokens)
        self._vocabulary.update(tokens)
        self._snapshot = None

    def train_many(self, examples: Iterable[Tuple[str, str]]) -> "TextClassifier":
        """Train on (label, text) pairs in order. Returns self for chaining."""
        count = 0
        for label, text in examples:
            self.train(label, text)
            count += 1
        logger.info(
            f"{self.name}: trained on {count} example(s), "
            f"{len(self._label_counts)} label(s), vocabulary={len(self._vocabulary)}"
        )
        return self

    def snapshot(self) -> ClassifierModel:
        """
        Freeze the current counts into an immutable ClassifierModel.

        The snapshot is cached until the next train() call.
        """
        if self._snapshot is None:
            self._snapshot = self._freeze()
        return self._snapshot

    def _freeze(self) -> ClassifierModel:
        return ClassifierModel(
            label_counts=MappingProxyType(dict(self._label_counts)),
            token_counts_by_label=MappingProxyType({
                label: MappingProxyType(dict(bucket))
                for label, bucket in self._token_counts.items()
            }),
            vocabulary=frozenset(self._vocabulary),
            total_docs=self._total_docs,
            name=self.name,
        )

    def predict(self, text: Optional[str]) -> ClassificationResult:
        return self.snapshot().predict(text)

    def predict_strict(self, text: Optional[str]) -> ClassificationResult:
        return self.snapshot().predict_strict(text)
