import logging
import re
from dataclasses import dataclass, field

import opik
from rapidfuzz import fuzz, process

from pod_engine.core.document import (
    PALLET_DOCUMENT_TYPES,
    AlternativeType,
    AutomaticClassification,
    ClassificationResult,
    Document,
    DocumentType,
    utcnow,
)
from pod_engine.services.classification.keywords import (
    FUZZY_MIN_KEYWORD_LENGTH,
    FUZZY_WEIGHT_FACTOR,
    KEYWORDS,
    MAX_SCORE,
    KeywordSet,
)

logger = logging.getLogger("pod_engine.classification")

BASE_EXPECTED_TYPES = (DocumentType.SHIP_DOCUMENT, DocumentType.INVOICE, DocumentType.RAR)


@dataclass
class ClassificationContext:
    """Types of the other documents in the same delivery."""
    sibling_types: list[DocumentType] = field(default_factory=list)


@dataclass
class TypeScore:
    type: DocumentType
    score: float
    keywords: list[str]
    primary_hits: int
    priority: int

    @property
    def confidence(self) -> float:
        return round(min(100.0, self.score / MAX_SCORE * 100), 2)


class KeywordClassifier:
    """Weighted keyword scoring over OCR text with a type-priority rule."""

    def __init__(
        self,
        min_confidence: float = 25.0,
        medium_ocr_confidence: float = 75.0,
        medium_ocr_threshold: float = 20.0,
        ocr_confidence_floor: float = 60.0,
        low_ocr_threshold: float = 15.0,
        low_ocr_confidence_cap: float = 50.0,
        fuzzy_match_ratio: float = 85.0,
        keywords: dict[DocumentType, KeywordSet] | None = None,
    ):
        self.min_confidence = min_confidence
        self.medium_ocr_confidence = medium_ocr_confidence
        self.medium_ocr_threshold = medium_ocr_threshold
        self.ocr_confidence_floor = ocr_confidence_floor
        self.low_ocr_threshold = low_ocr_threshold
        self.low_ocr_confidence_cap = low_ocr_confidence_cap
        self.fuzzy_match_ratio = fuzzy_match_ratio
        self.keywords = keywords or KEYWORDS

    @opik.track(name="classify_document")
    def classify(self, document: Document, context: ClassificationContext | None = None) -> ClassificationResult:
        """Classify a document. An existing manual override is returned unchanged."""
        if document.has_manual_override:
            logger.info(f"Document {document.id} has a manual override, skipping classification")
            return document.classification
        return self.classify_text(document.raw_text, document.ocr_confidence, context)

    def classify_text(
        self,
        text: str,
        ocr_confidence: float = 100.0,
        context: ClassificationContext | None = None,
    ) -> AutomaticClassification:
        if not text or not text.strip():
            return AutomaticClassification(classified_at=utcnow())

        scores = self.score(text)
        threshold = self.threshold_for(ocr_confidence)
        eligible = [s for s in scores if s.confidence >= threshold]

        if eligible:
            # Once any type clears the threshold, a primary hit on a higher-priority
            # type is decisive whatever its own score
            contenders = [
                s for s in scores
                if s.confidence >= threshold or (s.primary_hits and s.priority > 1)
            ]
            winner = max(contenders, key=lambda s: (s.priority if s.primary_hits else 0, s.score))
            if winner is not scores[0]:
                logger.info(
                    f"Priority rule selected {winner.type.value} over {scores[0].type.value} "
                    f"(scores {winner.score} vs {scores[0].score})"
                )
            return self._result(winner, scores, ocr_confidence)

        inferred = self._infer_from_context(context)
        if inferred is not None:
            confidence = min(self.low_ocr_confidence_cap, max(scores[0].confidence, threshold))
            logger.info(f"No keyword evidence above {threshold}, inferred {inferred.value} from context")
            return AutomaticClassification(
                detected_type=inferred,
                confidence=confidence,
                alternative_types=self._alternatives(scores, exclude=None),
                matched_keywords=[],
                inferred_from_context=True,
                classified_at=utcnow(),
            )

        top = scores[0]
        return AutomaticClassification(
            detected_type=DocumentType.UNKNOWN,
            confidence=self._cap(top.confidence, ocr_confidence),
            alternative_types=self._alternatives(scores, exclude=None),
            matched_keywords=list(top.keywords),
            classified_at=utcnow(),
        )

    def threshold_for(self, ocr_confidence: float) -> float:
        if ocr_confidence < self.ocr_confidence_floor:
            return self.low_ocr_threshold
        if ocr_confidence < self.medium_ocr_confidence:
            return self.medium_ocr_threshold
        return self.min_confidence

    def score(self, text: str) -> list[TypeScore]:
        """Score every candidate type, highest score first."""
        lower = text.lower()
        words = lower.split()
        windows: dict[int, list[str]] = {}
        scores = []
        for doc_type, keyword_set in self.keywords.items():
            total = 0.0
            matched: list[str] = []
            primary_hits = 0
            for keyword, weight, is_primary in self._weighted(keyword_set):
                hit = self._match(keyword, lower, words, windows)
                if hit is None:
                    continue
                if hit == keyword:
                    total += weight
                    matched.append(keyword)
                else:
                    total += weight * FUZZY_WEIGHT_FACTOR
                    matched.append(f"{keyword} (fuzzy: {hit})")
                if is_primary:
                    primary_hits += 1
            scores.append(TypeScore(doc_type, round(total, 2), matched, primary_hits, keyword_set.priority))
        scores.sort(key=lambda s: s.score, reverse=True)
        return scores

    @staticmethod
    def _weighted(keyword_set: KeywordSet):
        for keyword in keyword_set.primary:
            yield keyword.lower(), keyword_set.primary_weight, True
        for keyword in keyword_set.secondary:
            yield keyword.lower(), keyword_set.secondary_weight, False

    def _match(self, keyword: str, lower: str, words: list[str], windows: dict[int, list[str]]) -> str | None:
        if re.search(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", lower):
            return keyword
        if len(keyword) < FUZZY_MIN_KEYWORD_LENGTH:
            return None
        size = len(keyword.split())
        if size not in windows:
            windows[size] = [" ".join(words[i:i + size]) for i in range(max(0, len(words) - size + 1))]
        best = process.extractOne(keyword, windows[size], scorer=fuzz.ratio, score_cutoff=self.fuzzy_match_ratio)
        if best is None:
            return None
        return best[0]

    def _result(self, winner: TypeScore, scores: list[TypeScore], ocr_confidence: float) -> AutomaticClassification:
        return AutomaticClassification(
            detected_type=winner.type,
            confidence=self._cap(winner.confidence, ocr_confidence),
            alternative_types=self._alternatives(scores, exclude=winner.type),
            matched_keywords=list(winner.keywords),
            classified_at=utcnow(),
        )

    def _cap(self, confidence: float, ocr_confidence: float) -> float:
        if ocr_confidence < self.ocr_confidence_floor:
            return min(confidence, self.low_ocr_confidence_cap)
        return confidence

    @staticmethod
    def _alternatives(scores: list[TypeScore], exclude: DocumentType | None) -> list[AlternativeType]:
        return [
            AlternativeType(type=s.type, confidence=s.confidence)
            for s in scores
            if s.type != exclude and s.score > 0
        ][:3]

    @staticmethod
    def _infer_from_context(context: ClassificationContext | None) -> DocumentType | None:
        """The single expected type none of the sibling documents covers, if exactly one."""
        if context is None or not context.sibling_types:
            return None
        present = set(context.sibling_types)
        if present & set(PALLET_DOCUMENT_TYPES):
            expected = (*PALLET_DOCUMENT_TYPES, *BASE_EXPECTED_TYPES)
        else:
            expected = BASE_EXPECTED_TYPES
        missing = [t for t in expected if t not in present]
        if len(missing) != 1:
            return None
        return missing[0]
