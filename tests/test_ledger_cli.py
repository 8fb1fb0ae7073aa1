"""
Tests for the ledger-client command line.
"""

import json

import pytest
import yaml

from tools.ledger_client import identifiers
from tools.ledger_client.cli import CLIError, LedgerCLI, load_parameters, main
from tools.ledger_client.model import StatusCode, ValidationResult

from conftest import FakeLedger, business_failure


class TestLoadParameters:

    def test_none(self):
        assert load_parameters() is None

    def test_inline_json(self):
        assert load_parameters('{"amount": 10}') == {"amount": 10}

    def test_invalid_json(self):
        with pytest.raises(CLIError) as exc:
            load_parameters("{amount: }")
        assert exc.value.exit_code == 2

    def test_non_object(self):
        with pytest.raises(CLIError):
            load_parameters("[1, 2]")

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "params.yaml"
        path.write_text("amount: 10\nto: bob\n", encoding="utf-8")
        assert load_parameters(path=str(path)) == {"amount": 10, "to": "bob"}

    def test_json_file(self, tmp_path):
        path = tmp_path / "params.json"
        path.write_text('{"amount": 10}', encoding="utf-8")
        assert load_parameters(path=str(path)) == {"amount": 10}

    def test_missing_file(self, tmp_path):
        with pytest.raises(CLIError) as exc:
            load_parameters(path=str(tmp_path / "absent.json"))
        assert exc.value.exit_code == 2


class TestExecuteCommand:

    def test_success(self, workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["execute", "transfer", "--params", '{"amount": 10}'])
        assert rc == 0
        out = capsys.readouterr().out
        assert json.loads(out.partition("\n")[2]) == {"amount": 10}
        assert ledger.executed == [("transfer_alice", {"amount": 10})]

    def test_yaml_format(self, workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["--format", "yaml", "execute", "t", "-p", '{"a": 1}'])
        assert rc == 0
        assert capsys.readouterr().out == "[Return]\na: 1\n"

    def test_business_failure_exit_code(self, workdir, capsys):
        ledger = FakeLedger(execute=business_failure)
        rc = LedgerCLI(factory=ledger.factory).run(["execute", "missing"])
        assert rc == 1
        assert capsys.readouterr().err.strip() == "Error during contract execution"

    def test_missing_config_exit_code(self, empty_workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["execute", "transfer"])
        assert rc == 2
        assert ledger.open_count == 0

    def test_bad_params_exit_code(self, workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["execute", "transfer", "--params", "not json"])
        assert rc == 2
        assert "Invalid JSON parameters" in capsys.readouterr().err
        assert ledger.executed == []

    def test_quiet_suppresses_cli_errors(self, workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["--quiet", "execute", "t", "--params", "[]"])
        assert rc == 2
        assert capsys.readouterr().err == ""


class TestValidateCommand:

    def test_untampered(self, workdir, ledger, capsys):
        rc = LedgerCLI(factory=ledger.factory).run(["validate", "asset-2"])
        assert rc == 0
        assert capsys.readouterr().out.strip() == "Asset asset-2 is untampered"

    def test_tampered(self, workdir, capsys):
        ledger = FakeLedger(validate=lambda asset_id: ValidationResult(StatusCode.INVALID_PREV_HASH))
        rc = LedgerCLI(factory=ledger.factory).run(["validate", "asset-1"])
        assert rc == 1
        assert "301" in capsys.readouterr().err

    def test_raising_client_exit_code(self, workdir, capsys):
        def explode(asset_id):
            raise RuntimeError("engine exploded")

        ledger = FakeLedger(validate=explode)
        rc = LedgerCLI(factory=ledger.factory).run(["validate", "asset-1"])
        assert rc == 1
        assert "untampered" not in capsys.readouterr().out


class TestDigestCommand:

    def test_digest(self, capsys):
        assert main(["digest", "asset-name"]) == 0
        out = capsys.readouterr().out.strip()
        assert out == identifiers.hash_hex_string("asset-name")

    def test_digest_unavailable(self, monkeypatch, capsys):
        monkeypatch.setattr(identifiers, "DIGEST_ALGORITHM", "no-such-hash")
        assert main(["digest", "asset-name"]) == 1
        assert "unavailable" in capsys.readouterr().err


class TestConfigCommands:

    def test_show(self, workdir, capsys):
        assert main(["config", "show"]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["scalar.dl.client.cert_holder_id"] == "alice"

    def test_show_yaml(self, workdir, capsys):
        assert main(["-f", "yaml", "config", "show"]) == 0
        shown = yaml.safe_load(capsys.readouterr().out)
        assert shown["scalar.dl.client.server.port"] == 50051

    def test_show_missing(self, empty_workdir, capsys):
        assert main(["config", "show"]) == 2
        assert "not found" in capsys.readouterr().err

    def test_validate(self, workdir, capsys):
        assert main(["config", "validate"]) == 0
        assert json.loads(capsys.readouterr().out) == {"valid": True, "errors": []}

    def test_validate_missing(self, empty_workdir, capsys):
        assert main(["config", "validate"]) == 2
        assert json.loads(capsys.readouterr().out)["valid"] is False

    def test_schema(self, capsys):
        assert main(["config", "schema"]) == 0
        schema = json.loads(capsys.readouterr().out)
        assert "scalar.dl.client.cert_holder_id" in schema["properties"]

    def test_config_without_subcommand(self, capsys):
        assert main(["config"]) == 2


class TestMisc:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: ledger-client" in capsys.readouterr().out

    def test_unexpected_error_exit_code(self, monkeypatch, capsys):
        def broken(name):
            raise RuntimeError("boom")

        monkeypatch.setattr(identifiers, "hash_hex_string", broken)
        assert main(["digest", "asset-name"]) == 2
        assert capsys.readouterr().err.strip() == "Error: boom"

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "ledger-client" in capsys.readouterr().out
