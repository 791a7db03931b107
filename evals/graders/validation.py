from opik.evaluation.metrics import BaseMetric
from opik.evaluation.metrics.score_result import ScoreResult


class ValidationStatusCorrectness(BaseMetric):
    """Checks the overall validation status against the expected one."""
    def __init__(self, name: str = "validation_status_correctness", track: bool = True):
        super().__init__(name=name, track=track)

    def score(self, status: str, expected_status: str, **kwargs) -> ScoreResult:
        correct = status == expected_status
        return ScoreResult(
            value=1.0 if correct else 0.0,
            name=self.name,
            reason=f"Expected {expected_status}, got {status}",
        )


class PeculiarityCoverage(BaseMetric):
    """F1 between reported and expected peculiarity types."""
    def __init__(self, name: str = "peculiarity_coverage", track: bool = True):
        super().__init__(name=name, track=track)

    def score(self, peculiarity_types: list[str], expected_peculiarity_types: list[str], **kwargs) -> ScoreResult:
        expected_set = set(expected_peculiarity_types)
        actual_set = set(peculiarity_types)

        if not expected_set and not actual_set:
            return ScoreResult(value=1.0, name=self.name, reason="No peculiarities expected or found")

        precision = len(expected_set & actual_set) / len(actual_set) if actual_set else 0.0
        recall = len(expected_set & actual_set) / len(expected_set) if expected_set else 1.0
        f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0

        return ScoreResult(
            value=f1,
            name=self.name,
            reason=f"P={precision:.2f} R={recall:.2f} F1={f1:.2f}. Expected: {expected_set}, Got: {actual_set}",
        )
