from opik.evaluation.metrics import BaseMetric
from opik.evaluation.metrics.score_result import ScoreResult


class ClassificationAccuracy(BaseMetric):
    """Fraction of documents whose detected type matches the expected type."""
    def __init__(self, name: str = "classification_accuracy", track: bool = True):
        super().__init__(name=name, track=track)

    def score(self, detected_types: dict[str, str], expected_document_types: dict[str, str], **kwargs) -> ScoreResult:
        if not expected_document_types:
            return ScoreResult(value=1.0, name=self.name, reason="No expected document types")

        wrong = {
            doc_id: (detected_types.get(doc_id), expected)
            for doc_id, expected in expected_document_types.items()
            if detected_types.get(doc_id) != expected
        }
        correct = len(expected_document_types) - len(wrong)
        return ScoreResult(
            value=correct / len(expected_document_types),
            name=self.name,
            reason=f"{correct}/{len(expected_document_types)} correct. Mismatches (got, expected): {wrong}",
        )
