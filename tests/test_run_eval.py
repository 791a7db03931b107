"""Unit tests for the eval runner's scenario loading and Opik dataset sync (fake client, no network)."""
from evals.run_eval import load_scenarios, sync_datasets, to_dataset_items


class _FakeDataset:
    def __init__(self):
        self.items = []

    def insert(self, items):
        self.items.extend(items)


class _FakeOpik:
    def __init__(self):
        self.datasets = {}

    def get_or_create_dataset(self, name):
        return self.datasets.setdefault(name, _FakeDataset())


SCENARIOS = [
    {"id": "a", "category": "happy_path", "input": {}, "expected": {}},
    {"id": "b", "category": "mismatch", "input": {}, "expected": {}},
    {"id": "c", "category": "mismatch", "input": {}, "expected": {}},
]


class TestToDatasetItems:
    def test_id_moves_to_scenario_id(self):
        items = to_dataset_items(SCENARIOS)
        assert [item["scenario_id"] for item in items] == ["a", "b", "c"]
        assert all("id" not in item for item in items)

    def test_source_scenarios_untouched(self):
        to_dataset_items(SCENARIOS)
        assert SCENARIOS[0]["id"] == "a"


class TestSyncDatasets:
    def test_all_and_per_category(self):
        client = _FakeOpik()

        counts = sync_datasets(client, SCENARIOS)

        assert counts == {"pod-scenarios-all": 3, "pod-scenarios-happy_path": 1, "pod-scenarios-mismatch": 2}
        mismatch = client.datasets["pod-scenarios-mismatch"].items
        assert [item["scenario_id"] for item in mismatch] == ["b", "c"]

    def test_bundled_scenarios_sync(self):
        scenarios = load_scenarios()
        client = _FakeOpik()

        counts = sync_datasets(client, scenarios)

        assert counts["pod-scenarios-all"] == len(scenarios)
        assert sum(n for name, n in counts.items() if name != "pod-scenarios-all") == len(scenarios)
