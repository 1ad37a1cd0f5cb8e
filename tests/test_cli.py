from __future__ import annotations

from pathlib import Path

import pytest

from amazoncf import Driver, MachineState, MachineStore, StackCreationError
from amazoncf import cli, config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "GLOBAL_CONFIG_PATH", tmp_path / "defaults.toml")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def store(tmp_path: Path) -> MachineStore:
    store = MachineStore(tmp_path / "store")
    store.save(Driver(
        "web-1",
        str(store.root),
        cloudformation_url="https://s3.amazonaws.com/templates/docker-host.json",
        key_pair_name="ops",
        ssh_private_key_path="/keys/ops.pem",
        instance_id="i-0abc",
        ip_address="54.10.20.30",
    ))
    return store


def _run(store: MachineStore, *args: str) -> int:
    return cli.main(["--storage-path", str(store.root), *args])


class TestParser:
    def test_create_accepts_driver_flags(self):
        args = cli.build_parser().parse_args([
            "create", "web-1",
            "--cloudformation-url", "https://example/t.json",
            "--cloudformation-use-private-address",
        ])
        assert args.name == "web-1"
        assert args.cloudformation_url == "https://example/t.json"
        assert args.cloudformation_use_private_address is True
        assert args.cloudformation_keypath is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestCommands:
    def test_ls(self, store: MachineStore, capsys):
        assert _run(store, "ls") == 0
        out = capsys.readouterr().out
        assert "web-1" in out
        assert "i-0abc" in out

    def test_status(self, store: MachineStore, monkeypatch, capsys):
        monkeypatch.setattr(Driver, "get_state", lambda self: MachineState.RUNNING)
        assert _run(store, "status", "web-1") == 0
        assert capsys.readouterr().out.strip() == "Running"

    def test_url(self, store: MachineStore, monkeypatch, capsys):
        monkeypatch.setattr(Driver, "get_ip", lambda self: "54.10.20.30")
        assert _run(store, "url", "web-1") == 0
        assert capsys.readouterr().out.strip() == "tcp://54.10.20.30:2376"

    def test_stop_saves_driver(self, store: MachineStore, monkeypatch):
        calls: list[str] = []
        monkeypatch.setattr(Driver, "stop", lambda self: calls.append(self.machine_name))
        assert _run(store, "stop", "web-1") == 0
        assert calls == ["web-1"]

    def test_rm_deletes_stack_and_record(self, store: MachineStore, monkeypatch):
        removed: list[str] = []
        monkeypatch.setattr(Driver, "remove", lambda self: removed.append(self.machine_name))
        assert _run(store, "rm", "web-1") == 0
        assert removed == ["web-1"]
        assert not store.exists("web-1")

    def test_unknown_machine_fails(self, store: MachineStore, capsys):
        assert _run(store, "status", "nope") == 1
        assert "Machine nope does not exist" in capsys.readouterr().err

    def test_create_requires_url(self, store: MachineStore, capsys):
        assert _run(store, "create", "web-2", "--cloudformation-keypairname", "ops") == 1
        assert "--cloudformation-url" in capsys.readouterr().err
        assert not store.exists("web-2")

    def test_create_rejects_existing_machine(self, store: MachineStore, capsys):
        assert _run(store, "create", "web-1") == 1
        assert "already exists" in capsys.readouterr().err

    def test_create_uses_project_config(self, store: MachineStore, tmp_path: Path, monkeypatch, capsys):
        key = tmp_path / "ops.pem"
        key.write_text("key")
        (tmp_path / "amazoncf.toml").write_text(
            "[driver]\n"
            'cloudformation-url = "https://example/t.json"\n'
            'cloudformation-keypairname = "ops"\n'
            f'cloudformation-keypath = "{key}"\n'
        )
        created: list[Driver] = []

        def fake_create(self: Driver) -> None:
            created.append(self)
            self.instance_id = "i-0new"

        monkeypatch.setattr(Driver, "create", fake_create)
        monkeypatch.setattr(Driver, "get_url", lambda self: "tcp://1.2.3.4:2376")

        assert _run(store, "create", "web-2") == 0
        assert created[0].cloudformation_url == "https://example/t.json"
        assert store.load("web-2").instance_id == "i-0new"
        assert "tcp://1.2.3.4:2376" in capsys.readouterr().out

    def test_failed_create_keeps_record(self, store: MachineStore, tmp_path: Path, monkeypatch):
        key = tmp_path / "ops.pem"
        key.write_text("key")

        def failing_create(self: Driver) -> None:
            raise StackCreationError(self.machine_name, "ROLLBACK_COMPLETE")

        monkeypatch.setattr(Driver, "create", failing_create)

        code = _run(
            store, "create", "web-2",
            "--cloudformation-url", "https://example/t.json",
            "--cloudformation-keypairname", "ops",
            "--cloudformation-keypath", str(key),
        )

        assert code == 1
        assert store.exists("web-2")

    def test_missing_region_reports_error(self, store: MachineStore, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "no-aws-config"))
        monkeypatch.delenv("AWS_PROFILE", raising=False)

        assert _run(store, "status", "web-1") == 1
        assert "region" in capsys.readouterr().err

    def test_bad_boolean_in_environment(self, store: MachineStore, tmp_path: Path, monkeypatch, capsys):
        key = tmp_path / "ops.pem"
        key.write_text("key")
        monkeypatch.setenv("CF_USE_PRIVATE_ADDRESS", "maybe")

        code = _run(
            store, "create", "web-2",
            "--cloudformation-url", "https://example/t.json",
            "--cloudformation-keypairname", "ops",
            "--cloudformation-keypath", str(key),
        )

        assert code == 1
        assert "--cloudformation-use-private-address" in capsys.readouterr().err
        assert not store.exists("web-2")

    def test_log_file_receives_debug_output(self, store: MachineStore, tmp_path: Path, monkeypatch):
        monkeypatch.setattr(Driver, "stop", lambda self: None)
        log_file = tmp_path / "cli.log"

        assert _run(store, "--log-file", str(log_file), "stop", "web-1") == 0
        assert "Saved machine web-1" in log_file.read_text()
