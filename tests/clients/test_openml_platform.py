"""OpenML adapter tests (no network: openml calls are monkeypatched)."""

from types import SimpleNamespace

import openml
import pandas as pd

from sweepbot.clients.openml_platform import OpenMLPlatform, parse_parameter_value


class _FakeRun:
    def __init__(self):
        self.task_id = 3
        self.flow_name = "sklearn.pipeline.Pipeline(...)"
        self.run_id = None
        self.published = False
        self.tags = []

    def publish(self):
        self.published = True
        self.run_id = 4242
        return self

    def push_tag(self, tag):
        self.tags.append(tag)


def test_parse_parameter_value():
    assert parse_parameter_value("1.5") == 1.5
    assert parse_parameter_value('"rbf"') == "rbf"
    assert parse_parameter_value("null") is None
    assert parse_parameter_value("true") is True
    assert parse_parameter_value("not json") == "not json"
    assert parse_parameter_value(3) == 3


def test_upload_run_publishes_and_tags():
    run = _FakeRun()
    platform = OpenMLPlatform(confirm=lambda r, t: False)

    run_id = platform.upload_run(run, ["sweep-test", "svm"])

    assert run_id == 4242
    assert run.published
    assert run.tags == ["sweep-test", "svm"]


def test_upload_run_declined_confirmation_skips_upload():
    run = _FakeRun()
    asked = []
    platform = OpenMLPlatform(confirm=lambda r, t: asked.append(tuple(t)) or False)

    assert platform.upload_run(run, ["sweep-test"], confirm_upload=True) is None
    assert asked == [("sweep-test",)]
    assert not run.published
    assert run.tags == []


def test_upload_run_accepted_confirmation_uploads():
    run = _FakeRun()
    platform = OpenMLPlatform(confirm=lambda r, t: True)

    assert platform.upload_run(run, ["sweep-test"], confirm_upload=True) == 4242
    assert run.tags == ["sweep-test"]


def test_list_setups_builds_long_table(monkeypatch):
    captured = {}

    def fake_list_setups(setup, size, output_format):
        captured.update(setup=setup, size=size, output_format=output_format)
        param = lambda name, value: SimpleNamespace(  # noqa: E731
            parameter_name=name, value=value, flow_name="sklearn.svm.SVC"
        )
        return {
            101: SimpleNamespace(parameters={1: param("C", "2.0"), 2: param("kernel", '"rbf"')}),
            102: SimpleNamespace(parameters=None),
        }

    monkeypatch.setattr(openml.setups, "list_setups", fake_list_setups)

    df = OpenMLPlatform().list_setups([102, 101, 101])

    assert captured == {"setup": [101, 102], "size": 2, "output_format": "object"}
    assert list(df.columns) == ["setup_id", "flow_name", "name", "value"]
    assert df["name"].tolist() == ["C", "kernel"]
    assert (df["setup_id"] == 101).all()


def test_list_setups_empty_ids_skips_query(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not query")

    monkeypatch.setattr(openml.setups, "list_setups", fail)
    df = OpenMLPlatform().list_setups([])
    assert df.empty
    assert list(df.columns) == ["setup_id", "flow_name", "name", "value"]


def test_list_evaluations_and_runs_pass_tag(monkeypatch):
    calls = []

    def fake_evals(**kwargs):
        calls.append(("evals", kwargs))
        return pd.DataFrame({"run_id": [1], "value": [0.9]})

    def fake_runs(**kwargs):
        calls.append(("runs", kwargs))
        return pd.DataFrame({"run_id": [1], "task_id": [3], "setup_id": [5]})

    monkeypatch.setattr(openml.evaluations, "list_evaluations", fake_evals)
    monkeypatch.setattr(openml.runs, "list_runs", fake_runs)

    platform = OpenMLPlatform(page_size=50)
    assert len(platform.list_evaluations("area_under_roc_curve", "sweep-test")) == 1
    assert len(platform.list_runs("sweep-test")) == 1

    assert calls[0][1]["function"] == "area_under_roc_curve"
    assert calls[0][1]["tag"] == "sweep-test"
    assert calls[0][1]["size"] == 50
    assert calls[1][1]["tag"] == "sweep-test"


def test_get_dataset_qualities(monkeypatch):
    def fake_get_dataset(data_id, **kwargs):
        assert kwargs["download_data"] is False
        return SimpleNamespace(qualities={"NumberOfClasses": 2.0})

    monkeypatch.setattr(openml.datasets, "get_dataset", fake_get_dataset)
    assert OpenMLPlatform().get_dataset_qualities(13) == {"NumberOfClasses": 2.0}


def test_get_task_skips_data_download(monkeypatch):
    captured = {}

    def fake_get_task(task_id, **kwargs):
        captured.update(task_id=task_id, **kwargs)
        return SimpleNamespace(task_id=task_id, dataset_id=31)

    monkeypatch.setattr(openml.tasks, "get_task", fake_get_task)

    task = OpenMLPlatform().get_task(3)

    assert task.dataset_id == 31
    assert captured == {"task_id": 3, "download_data": False, "download_qualities": False}


def test_nominal_feature_indices_excludes_target():
    calls = []

    def get_features_by_type(kind, exclude=None):
        calls.append((kind, exclude))
        return [0, 4]

    dataset = SimpleNamespace(get_features_by_type=get_features_by_type)
    task = SimpleNamespace(target_name="class", get_dataset=lambda: dataset)

    assert OpenMLPlatform().nominal_feature_indices(task) == [0, 4]
    assert calls == [("nominal", ["class"])]


def test_run_model_runs_without_duplicate_check_or_flow_upload(monkeypatch):
    captured = {}

    def fake_run_model_on_task(model, task, **kwargs):
        captured.update(model=model, task=task, **kwargs)
        return "run"

    monkeypatch.setattr(openml.runs, "run_model_on_task", fake_run_model_on_task)

    assert OpenMLPlatform().run_model("estimator", "task") == "run"
    assert captured == {
        "model": "estimator",
        "task": "task",
        "avoid_duplicate_runs": False,
        "upload_flow": False,
    }


def test_list_setups_queries_in_chunks(monkeypatch):
    queried = []

    def fake_list_setups(setup, size, output_format):
        queried.append(list(setup))
        param = SimpleNamespace(parameter_name="C", value="1.0", flow_name="sklearn.svm.SVC")
        return {s: SimpleNamespace(parameters={1: param}) for s in setup}

    monkeypatch.setattr(openml.setups, "list_setups", fake_list_setups)

    df = OpenMLPlatform(setup_chunk_size=2).list_setups([5, 1, 4, 2, 3])

    assert queried == [[1, 2], [3, 4], [5]]
    assert df["setup_id"].tolist() == [1, 2, 3, 4, 5]


def test_listing_warns_when_page_is_full(monkeypatch, caplog):
    monkeypatch.setattr(
        openml.runs,
        "list_runs",
        lambda **kwargs: pd.DataFrame({"run_id": [1, 2], "task_id": [3, 3], "setup_id": [5, 6]}),
    )
    monkeypatch.setattr(
        openml.evaluations,
        "list_evaluations",
        lambda **kwargs: pd.DataFrame({"run_id": [1], "value": [0.9]}),
    )

    platform = OpenMLPlatform(page_size=2)
    with caplog.at_level("WARNING", logger="sweepbot.clients.openml_platform"):
        platform.list_runs("big-tag")
        platform.list_evaluations("area_under_roc_curve", "big-tag")

    truncated = [r for r in caplog.records if "truncated" in r.getMessage()]
    assert len(truncated) == 1
    assert "runs" in truncated[0].getMessage()
