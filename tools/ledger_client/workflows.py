"""
Ledger Workflows

The two user intents served by the client:

    execute_contract(name, parameters)   run a registered contract
    validate_asset(id)                   prove an asset is untampered

Each call loads the holder identity afresh, derives the backend id, opens one
session, dispatches exactly one request and reports the outcome once.
Nothing is retried and nothing is raised past the workflow boundary:

    ConfigurationError / SessionError   "Error: ..." + traced error log
    contract rejected or failed         "Error during contract execution"
    non-OK or failed validation         "Error during asset validate: ..."

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from tools.ledger_client.config import load_client_config
from tools.ledger_client.errors import BusinessExecutionError, ConfigurationError, SessionError
from tools.ledger_client.identity import IdentityContext
from tools.ledger_client.model import (
    ContractInvocation,
    ContractResult,
    ErrorKind,
    Failure,
    OperationOutcome,
    StatusCode,
    ValidationRequest,
    ValidationResult,
)
from tools.ledger_client.observability import (
    LedgerLayer,
    generate_correlation_id,
    get_logger,
    reset_correlation_id,
    set_correlation_id,
    timed_operation,
)
from tools.ledger_client.render import OutputFormat, render
from tools.ledger_client.session import ClientFactory, LedgerSession, SessionManager

EXECUTION_ERROR_MESSAGE = "Error during contract execution"

execution_logger = get_logger("execute", LedgerLayer.EXECUTION)
validation_logger = get_logger("validate", LedgerLayer.VALIDATION)


class LedgerExecutor:
    """
    Runs contract executions and asset validations against the ledger.

    Output streams default to the process streams current at call time.
    """

    def __init__(
        self,
        factory: Optional[ClientFactory] = None,
        cwd: Optional[Union[str, Path]] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        fmt: OutputFormat = OutputFormat.JSON,
    ):
        self.sessions = SessionManager(factory=factory, cwd=cwd)
        self.cwd = cwd
        self.fmt = fmt
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def execute_contract(
        self,
        contract_name: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> OperationOutcome:
        """Execute a contract registered by the configured holder."""
        token = set_correlation_id(generate_correlation_id())
        try:
            return self._execute_contract(contract_name, parameters)
        finally:
            reset_correlation_id(token)

    def validate_asset(self, asset_id: str) -> OperationOutcome:
        """Ask the ledger to prove the holder's asset is untampered."""
        token = set_correlation_id(generate_correlation_id())
        try:
            return self._validate_asset(asset_id)
        finally:
            reset_correlation_id(token)

    @timed_operation(execution_logger, "execute_contract")
    def _execute_contract(
        self,
        contract_name: str,
        parameters: Optional[Dict[str, Any]],
    ) -> OperationOutcome:
        try:
            config = load_client_config(self.cwd)
            identity = IdentityContext.from_config(config)
            invocation = ContractInvocation(
                contract_id=identity.contract_id(contract_name),
                parameters=parameters if parameters is not None else {},
            )

            def run(session: LedgerSession) -> OperationOutcome:
                try:
                    return session.dispatch(invocation)
                except BusinessExecutionError as e:
                    execution_logger.info(
                        "Contract execution rejected",
                        contract_id=invocation.contract_id,
                        status_code=e.status_code,
                    )
                    return Failure(
                        kind=ErrorKind.BUSINESS_EXECUTION,
                        message=str(e),
                        cause=e,
                        status_code=e.status_code,
                    )
                except (ConfigurationError, SessionError):
                    raise
                except Exception as e:
                    execution_logger.info(
                        "Contract execution failed",
                        exc_info=True,
                        contract_id=invocation.contract_id,
                    )
                    return Failure(kind=ErrorKind.BUSINESS_EXECUTION, message=str(e), cause=e)

            outcome = self.sessions.with_session(run, config)
        except (ConfigurationError, SessionError) as e:
            outcome = self._fatal(e, execution_logger, contract_name=contract_name)

        self._report_execution(outcome)
        return outcome

    @timed_operation(validation_logger, "validate_asset")
    def _validate_asset(self, asset_id: str) -> OperationOutcome:
        try:
            config = load_client_config(self.cwd)
            identity = IdentityContext.from_config(config)
            request = ValidationRequest(asset_id=identity.asset_id(asset_id))

            def run(session: LedgerSession) -> OperationOutcome:
                try:
                    result = session.dispatch(request)
                except (ConfigurationError, SessionError):
                    raise
                except Exception as e:
                    code = getattr(e, "status_code", None)
                    if code is None or code == StatusCode.OK:
                        code = StatusCode.RUNTIME_ERROR
                    validation_logger.info(
                        "Asset validation raised",
                        exc_info=True,
                        asset_id=request.asset_id,
                        status_code=int(code),
                    )
                    # fail closed
                    return Failure(
                        kind=ErrorKind.VALIDATION_FAILED,
                        message=str(e),
                        cause=e,
                        status_code=int(code),
                    )
                if result.ok:
                    return result
                validation_logger.info(
                    "Asset validation failed",
                    asset_id=request.asset_id,
                    status_code=result.status_code,
                    status=StatusCode.describe(result.status_code),
                    detail=result.detail,
                )
                # fail closed: anything but OK is not proven untampered
                return Failure(
                    kind=ErrorKind.VALIDATION_FAILED,
                    message=result.detail or f"Asset {asset_id} failed validation",
                    status_code=int(result.status_code),
                )

            outcome = self.sessions.with_session(run, config)
        except (ConfigurationError, SessionError) as e:
            outcome = self._fatal(e, validation_logger, asset_id=asset_id)

        self._report_validation(asset_id, outcome)
        return outcome

    def _fatal(self, error: Exception, logger: Any, **context: Any) -> Failure:
        """Classify a configuration/session failure. Call from an except block."""
        kind = ErrorKind.CONFIGURATION if isinstance(error, ConfigurationError) else ErrorKind.SESSION
        logger.error(str(error), error_code=kind.value, exc_info=True, **context)
        return Failure(kind=kind, message=str(error), cause=error)

    def _report_execution(self, outcome: OperationOutcome) -> None:
        if isinstance(outcome, ContractResult):
            render(outcome.payload, self.stdout, self.fmt)
        elif isinstance(outcome, Failure):
            if outcome.kind == ErrorKind.BUSINESS_EXECUTION:
                print(EXECUTION_ERROR_MESSAGE, file=self.stderr)
            else:
                print(f"Error: {outcome.message}", file=self.stderr)

    def _report_validation(self, asset_id: str, outcome: OperationOutcome) -> None:
        if isinstance(outcome, ValidationResult):
            print(f"Asset {asset_id} is untampered", file=self.stdout)
        elif isinstance(outcome, Failure):
            if outcome.kind == ErrorKind.VALIDATION_FAILED:
                print(
                    f"Error during asset validate: {asset_id} (status code: {outcome.status_code})",
                    file=self.stderr,
                )
            else:
                print(f"Error: {outcome.message}", file=self.stderr)
