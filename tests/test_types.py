"""Tests for the config data model."""

import pytest
from pydantic import ValidationError

from keepup.types import (
    Config,
    LaunchAction,
    ProcessSpec,
    ReconcileOutcome,
    ReconcileReport,
)


def test_argv_starts_with_path():
    spec = ProcessSpec(name="b", path="/bin/b", args=["--x"])
    assert spec.argv == ["/bin/b", "--x"]


def test_args_default_and_null():
    assert ProcessSpec(name="a", path="/bin/a").args == ()
    assert ProcessSpec.model_validate({"name": "a", "path": "/bin/a", "args": None}).argv == ["/bin/a"]


def test_spec_is_immutable():
    spec = ProcessSpec(name="a", path="/bin/a")
    with pytest.raises(ValidationError):
        spec.name = "other"


def test_args_must_be_strings():
    with pytest.raises(ValidationError):
        ProcessSpec.model_validate({"name": "a", "path": "/bin/a", "args": [1, {"x": 2}]})


def test_config_keeps_order_and_duplicates():
    config = Config.model_validate({"processes": [
        {"name": "b", "path": "/bin/b"},
        {"name": "a", "path": "/bin/a"},
        {"name": "a", "path": "/opt/a"},
    ]})
    assert [p.name for p in config.processes] == ["b", "a", "a"]


def test_config_defaults_to_empty():
    assert Config().processes == ()
    assert Config.model_validate({}).processes == ()
    assert Config.model_validate({"processes": None}).processes == ()


def test_report_views():
    report = ReconcileReport(outcomes=[
        ReconcileOutcome(name="a", path="/bin/a", action=LaunchAction.RUNNING),
        ReconcileOutcome(name="b", path="/bin/b", action=LaunchAction.LAUNCHED, pid=7),
        ReconcileOutcome(name="c", path="/bin/c", action=LaunchAction.FAILED, error="x"),
    ])
    assert [o.name for o in report.already_running] == ["a"]
    assert [o.pid for o in report.launched] == [7]
    assert [o.name for o in report.failed] == ["c"]


@pytest.mark.parametrize("fields", [
    {"path": "/bin/tr\0ue"},
    {"path": "/bin/true", "args": ["ok", "bad\0arg"]},
])
def test_nul_in_path_or_args_rejected(fields):
    with pytest.raises(ValidationError, match="NUL"):
        ProcessSpec.model_validate({"name": "x", **fields})
