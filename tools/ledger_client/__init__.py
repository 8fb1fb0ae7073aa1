"""Ledger Client v0.1.0

Command-execution layer over a remote, tamper-evident ledger service. Turns
"run this registered contract with these parameters" and "prove this asset
is untampered" into a correctly scoped session against the ledger and
renders the result.

Architecture:
    ledger_client/
    ├── __init__.py       # Package entry, version, public API
    ├── errors.py         # ConfigurationError, SessionError, ...
    ├── config.py         # client.properties → ClientConfig
    ├── identity.py       # IdentityContext (certificate holder)
    ├── identifiers.py    # Per-holder contract/asset ids, hex digest
    ├── model.py          # Requests, outcomes, status codes
    ├── session.py        # LedgerClient, LedgerSession, SessionManager
    ├── transport.py      # HttpLedgerClient (default LedgerClient)
    ├── workflows.py      # LedgerExecutor: execute_contract, validate_asset
    ├── render.py         # Result presentation
    ├── observability.py  # Structured logging
    └── cli.py            # Command-line interface

The ledger itself (contract engine, validation, storage) is a remote
service; this package only orchestrates calls into it and interprets the
outcomes.
"""

__version__ = "0.1.0"

from tools.ledger_client.config import (
    PROPERTIES_FILENAME,
    ClientConfig,
    load_client_config,
)
from tools.ledger_client.errors import (
    BusinessExecutionError,
    ConfigurationError,
    DigestError,
    LedgerClientError,
    SessionError,
)
from tools.ledger_client.identifiers import (
    derive_asset_id,
    derive_contract_id,
    hash_hex_string,
)
from tools.ledger_client.identity import IdentityContext, load_identity
from tools.ledger_client.model import (
    ContractInvocation,
    ContractResult,
    ErrorKind,
    Failure,
    StatusCode,
    ValidationRequest,
    ValidationResult,
)
from tools.ledger_client.render import OutputFormat, render
from tools.ledger_client.session import (
    LedgerClient,
    LedgerSession,
    SessionManager,
)
from tools.ledger_client.workflows import LedgerExecutor

__all__ = [
    "__version__",
    "PROPERTIES_FILENAME",
    "ClientConfig",
    "load_client_config",
    "LedgerClientError",
    "ConfigurationError",
    "SessionError",
    "BusinessExecutionError",
    "DigestError",
    "derive_contract_id",
    "derive_asset_id",
    "hash_hex_string",
    "IdentityContext",
    "load_identity",
    "ContractInvocation",
    "ValidationRequest",
    "ContractResult",
    "ValidationResult",
    "Failure",
    "ErrorKind",
    "StatusCode",
    "OutputFormat",
    "render",
    "LedgerClient",
    "LedgerSession",
    "SessionManager",
    "LedgerExecutor",
]
