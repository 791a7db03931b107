"""Unit tests for the Opik BaseMetric graders."""
from evals.graders.classification import ClassificationAccuracy
from evals.graders.validation import PeculiarityCoverage, ValidationStatusCorrectness


# --- ClassificationAccuracy ---


class TestClassificationAccuracy:
    def setup_method(self):
        self.grader = ClassificationAccuracy()

    def test_all_correct_returns_1(self):
        result = self.grader.score(
            detected_types={"inv": "INVOICE", "rar": "RAR"},
            expected_document_types={"inv": "INVOICE", "rar": "RAR"},
        )
        assert result.value == 1.0

    def test_half_correct(self):
        result = self.grader.score(
            detected_types={"inv": "INVOICE", "rar": "INVOICE"},
            expected_document_types={"inv": "INVOICE", "rar": "RAR"},
        )
        assert result.value == 0.5
        assert "rar" in result.reason

    def test_missing_detection_counts_as_wrong(self):
        result = self.grader.score(detected_types={}, expected_document_types={"inv": "INVOICE"})
        assert result.value == 0.0

    def test_nothing_expected_returns_1(self):
        result = self.grader.score(detected_types={"inv": "INVOICE"}, expected_document_types={})
        assert result.value == 1.0

    def test_ignores_extra_kwargs(self):
        result = self.grader.score(
            detected_types={"inv": "INVOICE"},
            expected_document_types={"inv": "INVOICE"},
            status="PASSED",
        )
        assert result.name == "classification_accuracy"


# --- ValidationStatusCorrectness ---


class TestValidationStatusCorrectness:
    def setup_method(self):
        self.grader = ValidationStatusCorrectness()

    def test_match_returns_1(self):
        assert self.grader.score(status="FAILED", expected_status="FAILED").value == 1.0

    def test_mismatch_returns_0(self):
        result = self.grader.score(status="WARNING", expected_status="FAILED")
        assert result.value == 0.0
        assert result.reason == "Expected FAILED, got WARNING"

    def test_result_named_after_metric(self):
        assert self.grader.score(status="PASSED", expected_status="PASSED").name == "validation_status_correctness"


# --- PeculiarityCoverage ---


class TestPeculiarityCoverage:
    def setup_method(self):
        self.grader = PeculiarityCoverage()

    def test_none_expected_none_found(self):
        assert self.grader.score(peculiarity_types=[], expected_peculiarity_types=[]).value == 1.0

    def test_exact_match(self):
        result = self.grader.score(
            peculiarity_types=["MISSING_STAMP", "MISSING_STAMP", "FIELD_MISMATCH"],
            expected_peculiarity_types=["FIELD_MISMATCH", "MISSING_STAMP"],
        )
        assert result.value == 1.0

    def test_nothing_found_when_expected(self):
        result = self.grader.score(peculiarity_types=[], expected_peculiarity_types=["MISSING_STAMP"])
        assert result.value == 0.0

    def test_unexpected_findings_lower_precision(self):
        result = self.grader.score(
            peculiarity_types=["MISSING_STAMP", "LOW_CONFIDENCE"],
            expected_peculiarity_types=["MISSING_STAMP"],
        )
        assert abs(result.value - 2 / 3) < 0.01

    def test_result_named_after_metric(self):
        result = self.grader.score(peculiarity_types=[], expected_peculiarity_types=[])
        assert result.name == "peculiarity_coverage"

    def test_custom_name(self):
        grader = PeculiarityCoverage(name="pallet_peculiarities", track=False)
        assert grader.score(peculiarity_types=[], expected_peculiarity_types=[]).name == "pallet_peculiarities"
