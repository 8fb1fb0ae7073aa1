import pathlib
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest


# Ensure repo root is on PYTHONPATH for direct package imports (e.g. `import tools`).
_REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from tools.ledger_client.errors import BusinessExecutionError  # noqa: E402
from tools.ledger_client.model import ContractResult, StatusCode, ValidationResult  # noqa: E402
from tools.ledger_client.session import LedgerClient  # noqa: E402

HOLDER_ID = "alice"


class FakeLedger:
    """Records every client the factory builds and every call made on them."""

    def __init__(
        self,
        execute: Optional[Callable[[str, Dict[str, Any]], ContractResult]] = None,
        validate: Optional[Callable[[str], ValidationResult]] = None,
        fail_open: Optional[Exception] = None,
        fail_close: Optional[Exception] = None,
    ):
        self.execute = execute or (lambda contract_id, argument: ContractResult(payload=argument))
        self.validate = validate or (lambda asset_id: ValidationResult(status_code=StatusCode.OK))
        self.fail_open = fail_open
        self.fail_close = fail_close
        self.open_count = 0
        self.close_count = 0
        self.executed: List[tuple] = []
        self.validated: List[str] = []
        self.configs: List[Any] = []

    def factory(self, config: Any) -> LedgerClient:
        self.configs.append(config)
        if self.fail_open is not None:
            raise self.fail_open
        self.open_count += 1
        return FakeLedgerClient(self)


class FakeLedgerClient(LedgerClient):
    def __init__(self, ledger: FakeLedger):
        self.ledger = ledger

    def execute_contract(self, contract_id: str, argument: Dict[str, Any]) -> ContractResult:
        self.ledger.executed.append((contract_id, argument))
        return self.ledger.execute(contract_id, argument)

    def validate_ledger(self, asset_id: str) -> ValidationResult:
        self.ledger.validated.append(asset_id)
        return self.ledger.validate(asset_id)

    def close(self) -> None:
        self.ledger.close_count += 1
        if self.ledger.fail_close is not None:
            raise self.ledger.fail_close


def write_properties(directory: pathlib.Path, text: str) -> pathlib.Path:
    path = directory / "client.properties"
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LEDGER_CLIENT_CERT_HOLDER_ID",
        "LEDGER_CLIENT_CERT_VERSION",
        "LEDGER_CLIENT_SERVER_HOST",
        "LEDGER_CLIENT_SERVER_PORT",
        "LEDGER_CLIENT_TLS_ENABLED",
        "LEDGER_CLIENT_PRIVATE_KEY_PATH",
        "LEDGER_CLIENT_LOG_LEVEL",
        "LEDGER_CLIENT_LOG_FORMAT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def workdir(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """A working directory holding a minimal client.properties."""
    write_properties(
        tmp_path,
        f"# ledger client\nscalar.dl.client.cert_holder_id={HOLDER_ID}\n",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def empty_workdir(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """A working directory without client.properties."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


def business_failure(contract_id: str, argument: Dict[str, Any]) -> ContractResult:
    raise BusinessExecutionError(f"Contract {contract_id} not found", status_code=StatusCode.CONTRACT_NOT_FOUND)
