import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main as main_module
from accountops.journal import LOGGER_NAME
from main import _parse_args, main


@pytest.fixture()
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ACCOUNTOPS_CONFIG", raising=False)
    yield tmp_path
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class RecordingManager:
    calls: list = []

    def __init__(self, settings, directory, logger, *, confirm):
        RecordingManager.calls = []
        self.settings = settings

    def create_accounts(self):
        self.calls.append(("create",))
        return True

    def delete_account(self, username):
        self.calls.append(("delete", username))
        return True

    def rotate_password(self, username):
        self.calls.append(("update-pass", username))
        return False

    def add_to_groups(self, username, groups):
        self.calls.append(("add-group", username, groups))
        return True

    def remove_from_group(self, username, group):
        self.calls.append(("remove-group", username, group))
        return True

    def generate_report(self):
        self.calls.append(("report",))
        return True


def test_parse_args_accepts_each_verb() -> None:
    args = _parse_args(["add-group", "janedoe", "ops,dev"])
    assert args.command == "add-group"
    assert args.username == "janedoe"
    assert args.groups == "ops,dev"

    args = _parse_args(["--host", "build01", "remove-group", "janedoe", "ops"])
    assert args.command == "remove-group"
    assert args.host == "build01"
    assert args.group == "ops"


def test_parse_args_allows_missing_positionals() -> None:
    args = _parse_args(["delete"])
    assert args.command == "delete"
    assert args.username is None


@pytest.mark.parametrize("argv", [[], ["frobnicate"], ["--config", "delete"], ["--config", "x.yaml"]])
def test_unknown_verb_prints_usage(argv, capsys, workdir) -> None:
    assert main(argv) == 0

    out = capsys.readouterr().out
    assert out.startswith("Usage: ")
    assert "{create|delete <user>|update-pass <user>|add-group <user> <groups>|remove-group <user> <group>|report}" in out
    assert not (workdir / "logs").exists()


def test_requires_root(monkeypatch, capsys, workdir) -> None:
    monkeypatch.setattr(main_module.LocalCommandRunner, "is_privileged", lambda self: False)

    assert main(["report"]) == 1

    assert "This script must be run as root!" in capsys.readouterr().err
    assert not list((workdir / "reports").iterdir())


def test_missing_explicit_config_fails(capsys, workdir) -> None:
    assert main(["--config", "nope.yaml", "report"]) == 1
    assert "Configuration file not found" in capsys.readouterr().err


def test_unknown_host_fails(capsys, workdir) -> None:
    assert main(["--host", "build01", "report"]) == 1
    assert "Unknown host 'build01'" in capsys.readouterr().err


def test_report_runs_end_to_end_when_privileged(monkeypatch, capsys, workdir) -> None:
    monkeypatch.setattr(main_module.LocalCommandRunner, "is_privileged", lambda self: True)
    (workdir / "reports").mkdir()
    (workdir / "reports" / "created_users.txt").write_text("janedoe,jane@x.com,gold,Secr3t!\n", encoding="utf-8")

    assert main(["report"]) == 0

    summaries = list((workdir / "reports").glob("summary_*.txt"))
    assert len(summaries) == 1
    assert "Users Created: 1" in summaries[0].read_text(encoding="utf-8")
    assert "[INFO] Summary report generated:" in (workdir / "logs" / "actions.log").read_text(encoding="utf-8")
    assert "Summary report generated" in capsys.readouterr().out


@pytest.mark.parametrize(
    ("argv", "expected_call", "expected_status"),
    [
        (["create"], ("create",), 0),
        (["delete", "janedoe"], ("delete", "janedoe"), 0),
        (["update-pass", "janedoe"], ("update-pass", "janedoe"), 1),
        (["add-group", "janedoe", "ops,dev"], ("add-group", "janedoe", "ops,dev"), 0),
        (["remove-group", "janedoe", "ops"], ("remove-group", "janedoe", "ops"), 0),
        (["report"], ("report",), 0),
    ],
)
def test_dispatches_to_handler(monkeypatch, workdir, argv, expected_call, expected_status) -> None:
    monkeypatch.setattr(main_module.LocalCommandRunner, "is_privileged", lambda self: True)
    monkeypatch.setattr(main_module, "AccountManager", RecordingManager)

    assert main(argv) == expected_status
    assert RecordingManager.calls == [expected_call]
