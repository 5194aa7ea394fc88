from __future__ import annotations

from datetime import date

import pytest

from hostcare.catalogue import Catalogue, SelectionError, TaskSpec
from hostcare.executor import (
    Failed,
    NotApplicable,
    Ok,
    PrivilegeRequiredError,
    Report,
    Skipped,
    TaskRunner,
    Unavailable,
    result_to_dict,
)
from hostcare.host import FeatureUnavailable, NotApplicableError, ProcessOutput, Volume
from hostcare.tools import Intent, Operation, Outcome, ToolInvoker, VolumeCheck
from hostcare.updater import VersionedArtifact


class Recorder:
    def __init__(self):
        self.calls: list[str] = []

    def task(self, name: str, result=None, exc: Exception | None = None):
        def run(ctx):
            self.calls.append(name)
            if exc is not None:
                raise exc
            return result

        return run


def _runner(catalogue: Catalogue, *, elevated: bool = True) -> TaskRunner:
    return TaskRunner(catalogue, object(), is_elevated=lambda: elevated)


def test_report_covers_catalogue_with_skipped_markers():
    rec = Recorder()
    cat = Catalogue(
        "test",
        (
            TaskSpec("a", rec.task("a", 1)),
            TaskSpec("b", rec.task("b", 2)),
            TaskSpec("c", rec.task("c", 3)),
        ),
    )

    report = _runner(cat).run(exclude={"b"})

    assert list(report.keys()) == ["a", "b", "c"]
    assert report["a"] == Ok(1)
    assert report["b"] == Skipped()
    assert report["c"] == Ok(3)
    assert rec.calls == ["a", "c"]


def test_include_runs_only_named_task():
    rec = Recorder()
    cat = Catalogue(
        "test", (TaskSpec("a", rec.task("a")), TaskSpec("b", rec.task("b")))
    )

    report = _runner(cat).run(include={"b"})

    assert rec.calls == ["b"]
    assert set(report) == {"a", "b"}
    assert isinstance(report["a"], Skipped)


def test_validation_error_runs_nothing():
    rec = Recorder()
    cat = Catalogue("test", (TaskSpec("a", rec.task("a")),))

    with pytest.raises(SelectionError):
        _runner(cat).run(exclude={"a"}, include={"a"})
    with pytest.raises(SelectionError):
        _runner(cat).run(include=set())

    assert rec.calls == []


def test_privileged_task_without_elevation_aborts_run():
    rec = Recorder()
    cat = Catalogue(
        "test",
        (
            TaskSpec("plain", rec.task("plain")),
            TaskSpec("admin", rec.task("admin"), privileged=True),
        ),
    )

    with pytest.raises(PrivilegeRequiredError) as e:
        _runner(cat, elevated=False).run()

    assert e.value.tasks == ["admin"]
    assert rec.calls == []


def test_privilege_is_not_required_when_privileged_task_is_disabled():
    rec = Recorder()
    checks: list[bool] = []

    def is_elevated() -> bool:
        checks.append(True)
        return False

    cat = Catalogue(
        "test",
        (
            TaskSpec("plain", rec.task("plain", "ok")),
            TaskSpec("admin", rec.task("admin"), privileged=True),
        ),
    )

    report = TaskRunner(cat, None, is_elevated=is_elevated).run(exclude={"admin"})

    assert report["plain"] == Ok("ok")
    assert checks == []


def test_failures_do_not_stop_sibling_tasks():
    rec = Recorder()
    cat = Catalogue(
        "test",
        (
            TaskSpec("boom", rec.task("boom", exc=RuntimeError("disk on fire"))),
            TaskSpec("missing", rec.task("missing", exc=FeatureUnavailable("no module"))),
            TaskSpec("nothing", rec.task("nothing", exc=NotApplicableError("no dumps"))),
            TaskSpec("fine", rec.task("fine", "payload")),
        ),
    )

    report = _runner(cat).run()

    assert rec.calls == ["boom", "missing", "nothing", "fine"]
    assert report["boom"] == Failed("RuntimeError: disk on fire")
    assert report["missing"] == Unavailable("no module")
    assert report["nothing"] == NotApplicable("no dumps")
    assert report["fine"] == Ok("payload")
    assert report.failed == ["boom"]


def test_executor_may_return_result_variant_directly():
    cat = Catalogue("test", (TaskSpec("a", lambda ctx: Unavailable("absent")),))
    report = _runner(cat).run()
    assert report["a"] == Unavailable("absent")


def test_report_collect_rejects_mismatched_keys():
    cat = Catalogue("test", (TaskSpec("a", lambda ctx: None),))
    with pytest.raises(ValueError):
        Report.collect(cat, {})
    with pytest.raises(ValueError):
        Report.collect(cat, {"a": Skipped(), "b": Skipped()})


def test_end_to_end_ok_unavailable_and_warning_exit_code():
    def fake_spawn(args):
        return ProcessOutput(tuple(args), b"Errors found on volume\r\n", 3)

    invoker = ToolInvoker(fake_spawn, encoding="utf-8")

    def t3(ctx):
        return invoker.invoke(Operation.FILESYSTEM_CHECK, Intent.VERIFY, "D:")

    cat = Catalogue(
        "test",
        (
            TaskSpec("T1", lambda ctx: {"hello": "world"}),
            TaskSpec("T2", lambda ctx: Unavailable("module missing")),
            TaskSpec("T3", t3),
        ),
    )

    report = _runner(cat).run()

    assert report["T1"] == Ok({"hello": "world"})
    assert report["T2"] == Unavailable("module missing")
    assert isinstance(report["T3"], Ok)
    tool_result = report["T3"].payload
    assert tool_result.exit_code == 3
    assert tool_result.outcome is Outcome.CONTAINS_ERRORS
    assert not tool_result.classification.failed
    assert report.failed == []


def test_result_serialization_shapes():
    assert result_to_dict(Skipped()) == {"status": "skipped"}
    assert result_to_dict(Unavailable("x")) == {"status": "unavailable", "reason": "x"}
    assert result_to_dict(Failed("y")) == {"status": "failed", "reason": "y"}
    assert result_to_dict(Ok([1, 2])) == {"status": "ok", "payload": [1, 2]}
    assert result_to_dict(NotApplicable("z")) == {
        "status": "not_applicable",
        "reason": "z",
    }


def test_report_is_a_read_only_mapping():
    cat = Catalogue(
        "test",
        (TaskSpec("a", lambda ctx: 1), TaskSpec("b", lambda ctx: 2)),
    )
    report = _runner(cat).run(include={"b"})

    assert "a" in report
    assert "zzz" not in report
    assert report.get("zzz") is None
    assert dict(report.items()) == {"a": Skipped(), "b": Ok(2)}
    assert list(report.values()) == [Skipped(), Ok(2)]


def test_derived_fields_are_serialized():
    unsupported = VolumeCheck(Volume("E:", "FAT32"), None)
    artifact = VersionedArtifact(
        install_path=r"C:\Program Files\Sysinternals",
        installed_version=date(2024, 1, 1),
        downloaded_version=date(2023, 6, 1),
        updated=False,
    )

    volume_out = result_to_dict(Ok([unsupported]))["payload"][0]
    artifact_out = result_to_dict(Ok(artifact))["payload"]

    assert volume_out["status"] == "unsupported"
    assert volume_out["result"] is None
    assert artifact_out["version"] == "20240101"
    assert artifact_out["downloaded_version"] == "20230601"
    assert "supported" not in volume_out
