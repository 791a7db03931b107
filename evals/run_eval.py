"""
Main evaluation runner. Uses opik.evaluate() to classify and validate every
scenario delivery and score the results.

Usage:
    python -m evals.run_eval
    python -m evals.run_eval --category mismatch
    python -m evals.run_eval --sync-only
"""
import argparse
import json
from pathlib import Path

import opik
from opik import Opik
from opik.evaluation import evaluate

from evals.graders.classification import ClassificationAccuracy
from evals.graders.validation import PeculiarityCoverage, ValidationStatusCorrectness

from pod_engine.builder import EngineBuilder
from pod_engine.config import AppConfig
from pod_engine.core.delivery import Delivery, DocumentRef
from pod_engine.core.document import Document


SCENARIOS_DIR = Path("evals/scenarios")


def load_scenarios(category: str | None = None) -> list[dict]:
    """Load scenarios from JSON files, optionally filtered by category."""
    scenarios = []
    for path in sorted(SCENARIOS_DIR.glob("*.json")):
        with open(path) as f:
            data = json.load(f)
        for s in data["scenarios"]:
            if category is None or s["category"] == category:
                scenarios.append(s)
    return scenarios


def to_dataset_items(scenarios: list[dict]) -> list[dict]:
    """Copy scenarios into dataset items. Opik requires 'id' to be a UUID, so ours moves to 'scenario_id'."""
    items = []
    for s in scenarios:
        item = {**s}
        item["scenario_id"] = item.pop("id", None)
        items.append(item)
    return items


def sync_datasets(client: Opik, scenarios: list[dict]) -> dict[str, int]:
    """Insert scenarios into 'pod-scenarios-all' and one dataset per category.

    Returns the number of items written per dataset name.
    """
    items = to_dataset_items(scenarios)
    by_dataset = {"pod-scenarios-all": items}
    for category in sorted({item["category"] for item in items}):
        by_dataset[f"pod-scenarios-{category}"] = [item for item in items if item["category"] == category]

    for name, dataset_items in by_dataset.items():
        client.get_or_create_dataset(name).insert(dataset_items)
        print(f"Synced {len(dataset_items)} scenarios to Opik dataset '{name}'")
    return {name: len(dataset_items) for name, dataset_items in by_dataset.items()}


def build_eval_task(config: AppConfig):
    """Build the task function that opik.evaluate() will call for each scenario."""

    @opik.track(name="pod_delivery")
    def eval_task(scenario: dict) -> dict:
        # Fresh in-memory stores per scenario so document ids can repeat
        builder = EngineBuilder(config)
        documents = [Document(**d) for d in scenario["input"]["documents"]]
        for doc in documents:
            builder.document_store.save(doc)
        delivery_id = scenario.get("scenario_id") or "eval"
        builder.delivery_store.save(Delivery(
            id=delivery_id,
            delivery_reference=delivery_id,
            client_identifier=scenario["input"].get("client_identifier"),
            documents=[DocumentRef(document_id=doc.id) for doc in documents],
        ))

        classified = builder.build_classification_service().reclassify_delivery(delivery_id)
        result = builder.build_validation_service().run_validation(delivery_id)

        return {
            "detected_types": {doc_id: c.detected_type.value for doc_id, c in classified.items()},
            "status": result.status.value,
            "peculiarity_types": [p.type for p in result.peculiarities],
            "message": result.message,
            # Pass through expected values for graders
            "expected_document_types": scenario["expected"]["document_types"],
            "expected_status": scenario["expected"]["status"],
            "expected_peculiarity_types": scenario["expected"].get("peculiarity_types", []),
        }

    return eval_task


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--category", type=str, default=None)
    parser.add_argument("--experiment-name", type=str, default=None)
    parser.add_argument("--sync-only", action="store_true", help="Push scenarios to Opik datasets and exit")
    args = parser.parse_args()

    config = AppConfig.from_yaml("config.yaml").model_copy(update={"store_backend": "memory"})

    scenarios = load_scenarios(args.category)
    client = Opik()
    if args.sync_only:
        sync_datasets(client, scenarios)
        return

    dataset_name = f"pod-scenarios-{args.category}" if args.category else "pod-scenarios-all"
    dataset = client.get_or_create_dataset(dataset_name)
    dataset.insert(to_dataset_items(scenarios))

    evaluate(
        dataset=dataset,
        task=build_eval_task(config),
        scoring_metrics=[
            ClassificationAccuracy(),
            ValidationStatusCorrectness(),
            PeculiarityCoverage(),
        ],
        experiment_name=args.experiment_name or "pod-engine-eval",
        experiment_config={
            "min_classification_confidence": config.min_classification_confidence,
            "rules_path": config.rules_path,
            "category": args.category or "all",
        },
    )


if __name__ == "__main__":
    main()
