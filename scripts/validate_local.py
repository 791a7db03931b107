"""Local end-to-end run: load an eval scenario, classify and validate it against the local record store.

Usage:
    uv run python scripts/validate_local.py
    uv run python scripts/validate_local.py evals/scenarios/default_client.json default-case-count-mismatch

This script:
1. Builds the engine from config.yaml with the "local" store backend
2. Writes the scenario's documents and delivery as JSON records under data/
3. Classifies every document in the delivery
4. Runs checklist validation for the delivery's client
5. Prints the checklist and the stored delivery status

Reads OPIK_API_KEY / OPIK_WORKSPACE from .env when traces should go to Opik.
"""
# ruff: noqa: E402
import json
import logging
import sys
from pathlib import Path

project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from dotenv import load_dotenv
load_dotenv(Path(project_root) / ".env")

from pod_engine.builder import EngineBuilder
from pod_engine.config import AppConfig
from pod_engine.core.delivery import Delivery, DocumentRef
from pod_engine.core.document import Document

DEFAULT_SCENARIOS = Path(project_root) / "evals" / "scenarios" / "default_client.json"


def load_scenario(path: Path, scenario_id: str | None) -> dict:
    with open(path) as f:
        scenarios = json.load(f)["scenarios"]
    if scenario_id is None:
        return scenarios[0]
    for s in scenarios:
        if s["id"] == scenario_id:
            return s
    raise SystemExit(f"Scenario {scenario_id} not found in {path}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    print("=== POD Engine: Local Validation Run ===\n")

    path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_SCENARIOS
    scenario = load_scenario(path, sys.argv[2] if len(sys.argv) > 2 else None)

    # 1. Build engine on local JSON records
    config = AppConfig.from_yaml(Path(project_root) / "config.yaml").model_copy(update={"store_backend": "local"})
    builder = EngineBuilder(config)
    print(f"Config: store={config.store_backend}, data_dir={config.data_dir}, rules={config.rules_path}")
    print(f"Clients: {builder.registry.list_clients()}\n")

    # 2. Store scenario records
    delivery_id = scenario["id"]
    documents = [Document(**d) for d in scenario["input"]["documents"]]
    for doc in documents:
        builder.document_store.save(doc)
    builder.delivery_store.save(Delivery(
        id=delivery_id,
        delivery_reference=delivery_id,
        client_identifier=scenario["input"].get("client_identifier"),
        documents=[DocumentRef(document_id=doc.id) for doc in documents],
    ))
    print(f"Stored delivery {delivery_id} with {len(documents)} documents\n")

    # 3. Classify
    classified = builder.build_classification_service().reclassify_delivery(delivery_id)
    for doc_id, c in classified.items():
        print(f"  {doc_id:<12} {c.detected_type.value:<28} {c.confidence:>6}%  {c.matched_keywords[:4]}")

    # 4. Validate
    result = builder.build_validation_service().run_validation(delivery_id)

    # 5. Print results
    print("\n" + "=" * 60)
    print(f"VALIDATION RESULT: {result.status.value}")
    print("=" * 60)
    print(f"  Validator:       {result.validator}")
    print(f"  Pallet scenario: {result.pallet_scenario.value}")
    print(f"  Message:         {result.message}")
    for section in result.checklist:
        print(f"\n  [{section.status.value}] {section.section}")
        for check in section.checks:
            print(f"    {check.status.value:<8} {check.name}: {check.message}")
    for skipped in result.skipped_sections:
        print(f"\n  [SKIPPED] {skipped.section}: {skipped.reason}")

    stored = builder.delivery_store.get(delivery_id)
    print("\n" + "=" * 60)
    print(f"Delivery status: {stored.status.value}")


if __name__ == "__main__":
    main()
