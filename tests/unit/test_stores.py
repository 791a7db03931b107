"""Unit tests for the in-memory and local JSON record stores."""
import pytest

from pod_engine.core.delivery import DeliveryStatus
from pod_engine.core.document import AutomaticClassification, DocumentType, utcnow
from pod_engine.core.errors import ConflictError, NotFoundError
from pod_engine.core.validation import CheckStatus, PalletScenario, ValidationResult
from pod_engine.services.store.local import LocalDeliveryStore, LocalDocumentStore
from pod_engine.services.store.memory import InMemoryDeliveryStore, InMemoryDocumentStore
from tests.mocks import INVOICE_TEXT, make_delivery, make_document, make_override


def _result(status: CheckStatus = CheckStatus.PASSED) -> ValidationResult:
    return ValidationResult(
        status=status,
        message="All checks passed",
        pallet_scenario=PalletScenario.WITHOUT_PALLETS,
        validator="checklist",
        validated_at=utcnow(),
    )


@pytest.fixture(params=["memory", "local"])
def stores(request, tmp_path):
    if request.param == "memory":
        return InMemoryDocumentStore(), InMemoryDeliveryStore()
    return LocalDocumentStore(tmp_path), LocalDeliveryStore(tmp_path)


class TestDocumentStore:
    def test_save_and_get(self, stores):
        documents, _ = stores
        doc = make_document("d1", DocumentType.INVOICE, INVOICE_TEXT)
        documents.save(doc)
        assert documents.get("d1") == doc

    def test_missing_raises_not_found(self, stores):
        documents, _ = stores
        with pytest.raises(NotFoundError, match="Document not found: nope"):
            documents.get("nope")

    def test_get_many_fails_on_any_missing(self, stores):
        documents, _ = stores
        documents.save(make_document("d1"))
        with pytest.raises(NotFoundError):
            documents.get_many(["d1", "d2"])

    def test_list_ids(self, stores):
        documents, _ = stores
        documents.save(make_document("a"))
        documents.save(make_document("b"))
        assert sorted(documents.list_ids()) == ["a", "b"]

    def test_returned_record_is_a_copy(self, stores):
        documents, _ = stores
        documents.save(make_document("d1", DocumentType.RAR))
        doc = documents.get("d1")
        doc.raw_text = "changed"
        assert documents.get("d1").raw_text == ""

    def test_create_rejects_existing_id(self, stores):
        documents, _ = stores
        documents.create(make_document("d1", text="original page"))
        with pytest.raises(ConflictError, match="d1"):
            documents.create(make_document("d1", text="rescanned page"))
        assert documents.get("d1").raw_text == "original page"

    def test_save_classification_keeps_other_fields(self, stores):
        documents, _ = stores
        documents.save(make_document("d1", text=INVOICE_TEXT, ocr_confidence=71))
        result = AutomaticClassification(detected_type=DocumentType.INVOICE, confidence=46.67)

        stored = documents.save_classification("d1", result)

        assert stored.detected_type == DocumentType.INVOICE
        assert documents.get("d1").raw_text == INVOICE_TEXT
        assert documents.get("d1").ocr_confidence == 71

    def test_automatic_result_never_replaces_stored_override(self, stores):
        documents, _ = stores
        documents.save(make_override("d1", DocumentType.RAR))

        with pytest.raises(ConflictError):
            documents.save_classification("d1", AutomaticClassification(detected_type=DocumentType.INVOICE))

        assert documents.get("d1").has_manual_override
        assert documents.get("d1").detected_type == DocumentType.RAR

    def test_replace_override_flag_allows_automatic_result(self, stores):
        documents, _ = stores
        documents.save(make_override("d1", DocumentType.RAR))

        documents.save_classification(
            "d1", AutomaticClassification(detected_type=DocumentType.INVOICE), replace_override=True,
        )

        assert documents.get("d1").has_manual_override is False

    def test_save_classification_missing_document(self, stores):
        documents, _ = stores
        with pytest.raises(NotFoundError):
            documents.save_classification("nope", AutomaticClassification())


class TestDeliveryStore:
    def test_missing_raises_not_found(self, stores):
        _, deliveries = stores
        with pytest.raises(NotFoundError, match="Delivery not found"):
            deliveries.get("nope")

    def test_find_by_document(self, stores):
        _, deliveries = stores
        docs = [make_document("a", DocumentType.INVOICE), make_document("b", DocumentType.RAR)]
        deliveries.save(make_delivery("d1", docs))
        deliveries.save(make_delivery("d2", docs[:1]))
        assert sorted(d.id for d in deliveries.find_by_document("a")) == ["d1", "d2"]
        assert [d.id for d in deliveries.find_by_document("b")] == ["d1"]
        assert deliveries.find_by_document("zzz") == []

    def test_set_document_type_touches_only_that_entry(self, stores):
        _, deliveries = stores
        docs = [make_document("a", DocumentType.INVOICE), make_document("b")]
        deliveries.save(make_delivery("d1", docs))

        deliveries.set_document_type("d1", "b", DocumentType.RAR)

        refs = {r.document_id: r.detected_type for r in deliveries.get("d1").documents}
        assert refs == {"a": DocumentType.INVOICE, "b": DocumentType.RAR}

    def test_record_validation_replaces_result_and_clears_error(self, stores):
        _, deliveries = stores
        deliveries.save(make_delivery("d1", []))
        deliveries.record_failure("d1", DeliveryStatus.FAILED, "boom")

        updated = deliveries.record_validation("d1", DeliveryStatus.COMPLETED, _result())

        assert updated.status == DeliveryStatus.COMPLETED
        assert updated.last_error is None
        assert deliveries.get("d1").validation_result.status == CheckStatus.PASSED

    def test_record_failure_keeps_prior_result(self, stores):
        _, deliveries = stores
        deliveries.save(make_delivery("d1", []))
        deliveries.record_validation("d1", DeliveryStatus.COMPLETED, _result(CheckStatus.WARNING))

        deliveries.record_failure("d1", DeliveryStatus.COMPLETED, "rule set missing")

        stored = deliveries.get("d1")
        assert stored.status == DeliveryStatus.COMPLETED
        assert stored.last_error == "rule set missing"
        assert stored.validation_result.status == CheckStatus.WARNING


class TestLocalStoreFiles:
    def test_one_json_file_per_record(self, tmp_path):
        documents = LocalDocumentStore(tmp_path)
        documents.save(make_document("d1"))
        assert (tmp_path / "documents" / "d1.json").exists()
        assert list((tmp_path / "documents").glob("*.tmp")) == []

    def test_survives_new_instance(self, tmp_path):
        LocalDeliveryStore(tmp_path).save(make_delivery("d1", [make_document("a", DocumentType.RAR)]))
        delivery = LocalDeliveryStore(tmp_path).get("d1")
        assert delivery.documents[0].detected_type == DocumentType.RAR
