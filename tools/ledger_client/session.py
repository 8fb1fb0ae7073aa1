"""
Ledger Session Management

A LedgerSession owns exactly one client connection to the ledger service and
is released exactly once, whether the operation run inside it returns,
raises a business error or fails in transport.

    SessionManager.open_session()
        load ClientConfig ──► factory(config) ──► LedgerSession
                                                      │
                                              dispatch(request)
                                                      │
                                                  close()  (always)

Client construction failures surface as SessionError before the operation is
invoked. A close failure is raised as SessionError on a clean exit and is
logged (not raised) when another exception is already unwinding, so the
primary cause is never masked.

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

from tools.ledger_client.config import ClientConfig, load_client_config
from tools.ledger_client.errors import SessionError
from tools.ledger_client.identity import IdentityContext
from tools.ledger_client.model import (
    ContractInvocation,
    ContractResult,
    OperationRequest,
    ValidationRequest,
    ValidationResult,
)
from tools.ledger_client.observability import LedgerLayer, get_logger, timed_operation

T = TypeVar("T")

logger = get_logger("session", LedgerLayer.SESSION)


class LedgerClient(ABC):
    """
    Client for the remote ledger service.

    Both operations are synchronous and either return or raise. The client is
    a releasable resource.
    """

    @abstractmethod
    def execute_contract(self, contract_id: str, argument: Dict[str, Any]) -> ContractResult:
        """Execute a registered contract with the given argument."""

    @abstractmethod
    def validate_ledger(self, asset_id: str) -> ValidationResult:
        """Ask the ledger whether an asset's history is untampered."""

    def close(self) -> None:
        """Release the underlying connection."""

    def __enter__(self) -> "LedgerClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


ClientFactory = Callable[[ClientConfig], LedgerClient]


def default_client_factory(config: ClientConfig) -> LedgerClient:
    """Build the HTTP gateway client for a configuration."""
    from tools.ledger_client.transport import HttpLedgerClient
    return HttpLedgerClient.from_config(config)


class LedgerSession:
    """A single open connection to the ledger, owned by one workflow."""

    def __init__(self, client: LedgerClient, identity: IdentityContext):
        self.identity = identity
        self._client = client
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @timed_operation(logger, "dispatch")
    def dispatch(self, request: OperationRequest) -> Union[ContractResult, ValidationResult]:
        """Send one request through the session."""
        if self._closed:
            raise SessionError("Ledger session is closed")

        if isinstance(request, ContractInvocation):
            return self._client.execute_contract(request.contract_id, request.parameters)
        if isinstance(request, ValidationRequest):
            return self._client.validate_ledger(request.asset_id)
        raise TypeError(f"Unsupported ledger request: {type(request).__name__}")

    def close(self) -> None:
        """Close the session. Subsequent calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._client.close()


class SessionManager:
    """
    Opens ledger sessions scoped to a single operation.

    The client factory is injected so tests and alternative transports can
    supply their own LedgerClient.
    """

    def __init__(
        self,
        factory: Optional[ClientFactory] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        self.factory = factory or default_client_factory
        self.cwd = cwd

    def _connect(self, config: ClientConfig) -> LedgerClient:
        try:
            return self.factory(config)
        except SessionError:
            raise
        except Exception as e:
            raise SessionError(f"Cannot open ledger session to {config.base_url}: {e}") from e

    @contextmanager
    def open_session(self, config: Optional[ClientConfig] = None) -> Iterator[LedgerSession]:
        """
        Acquire a session, releasing it on every exit path.

        Raises:
            ConfigurationError: if client.properties cannot be loaded
            SessionError: if the client cannot be built or closed
        """
        if config is None:
            config = load_client_config(self.cwd)
        identity = IdentityContext.from_config(config)

        session = LedgerSession(self._connect(config), identity)
        logger.debug("Ledger session opened", server=config.base_url, holder_id=identity.holder_id)

        try:
            yield session
        except BaseException:
            try:
                session.close()
            except Exception:
                logger.warning("Failed to close ledger session during unwind", exc_info=True)
            raise

        try:
            session.close()
        except SessionError:
            raise
        except Exception as e:
            raise SessionError(f"Failed to close ledger session: {e}") from e
        logger.debug("Ledger session closed")

    def with_session(
        self,
        f: Callable[[LedgerSession], T],
        config: Optional[ClientConfig] = None,
    ) -> T:
        """Run f with a live session and return its result."""
        with self.open_session(config) as session:
            return f(session)
