import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from pod_engine.builder import EngineBuilder
from pod_engine.config import AppConfig
from pod_engine.core.delivery import Delivery, DocumentRef
from pod_engine.core.document import Document, DocumentType
from pod_engine.core.errors import ConfigurationError, ConflictError, NotFoundError, ValidationExecutionError

logger = logging.getLogger("pod_engine.api")


class OverrideRequest(BaseModel):
    type: DocumentType
    reason: str
    actor: str


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Factory function for creating the FastAPI app with config."""
    if config is None:
        config = AppConfig.from_yaml("config.yaml")
    logging.getLogger("pod_engine").setLevel(config.log_level)

    builder = EngineBuilder(config)
    documents = builder.document_store
    deliveries = builder.delivery_store
    classification = builder.build_classification_service()
    validation = builder.build_validation_service()

    app = FastAPI(title="POD Engine")
    app.state.builder = builder

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConflictError)
    async def conflict(request: Request, exc: ConflictError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_error(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(ValidationExecutionError)
    async def execution_error(request: Request, exc: ValidationExecutionError):
        return JSONResponse(status_code=500, content={"detail": str(exc), "section": exc.section})

    @app.exception_handler(ValidationError)
    async def invalid_input(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.errors(include_url=False)})

    @app.post("/documents", status_code=201)
    def ingest_document(document: Document):
        """Store a new document and classify it unless it arrives already classified.

        Raw text and any manual override are never replaced: an existing id is a 409.
        """
        documents.create(document)
        if document.classification is None:
            classification.classify_document(document.id)
        logger.info(f"Document ingested: id={document.id}")
        return documents.get(document.id)

    @app.get("/documents/{document_id}")
    def get_document(document_id: str):
        return documents.get(document_id)

    @app.post("/documents/{document_id}/classify")
    def classify_document(document_id: str, force: bool = False):
        return classification.classify_document(document_id, force=force)

    @app.post("/documents/{document_id}/override")
    def override_document(document_id: str, body: OverrideRequest):
        return classification.apply_manual_override(document_id, body.type, body.reason, body.actor)

    @app.post("/deliveries", status_code=201)
    def ingest_delivery(delivery: Delivery):
        """Store a delivery. Cached document types are taken from the document records."""
        refs = [
            DocumentRef(document_id=doc.id, detected_type=doc.detected_type)
            for doc in documents.get_many(delivery.document_ids())
        ]
        deliveries.save(delivery.model_copy(update={"documents": refs}))
        logger.info(f"Delivery ingested: id={delivery.id}, documents={len(refs)}")
        return deliveries.get(delivery.id)

    @app.get("/deliveries/{delivery_id}")
    def get_delivery(delivery_id: str):
        return deliveries.get(delivery_id)

    @app.post("/deliveries/{delivery_id}/classify")
    def reclassify_delivery(delivery_id: str, force: bool = False):
        return classification.reclassify_delivery(delivery_id, force=force)

    @app.post("/deliveries/{delivery_id}/validate")
    def validate_delivery(delivery_id: str):
        return validation.run_validation(delivery_id)

    @app.get("/deliveries/{delivery_id}/consistency")
    def delivery_consistency(delivery_id: str):
        stale = validation.check_consistency(delivery_id)
        return {"consistent": not stale, "stale": stale}

    @app.post("/deliveries/{delivery_id}/reconcile")
    def reconcile_delivery(delivery_id: str):
        return {"repaired": validation.reconcile(delivery_id)}

    @app.get("/clients/{client_id}")
    def get_client(client_id: str):
        """Rule set that applies to the client (the default one when it has none)."""
        return builder.registry.get_client(client_id)

    @app.get("/health")
    async def health():
        return {"status": "ok", "clients": builder.registry.list_clients()}

    return app


# Module-level app instance for uvicorn (CMD: uvicorn pod_engine.api:app)
app = create_app()
