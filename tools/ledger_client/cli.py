#!/usr/bin/env python3
"""
Ledger Client CLI

Command-line interface for executing contracts on, and validating assets
against, a tamper-evident ledger. The holder identity and server are read
from client.properties in the current working directory.

Usage:
    ledger-client <command> [subcommand] [options]

Commands:
    execute     Execute a registered contract
    validate    Prove an asset is untampered
    digest      Print the uppercase hex digest of a name
    config      Inspect client.properties

Exit codes:
    0   success
    1   contract rejected, validation failed or digest unavailable
    2   usage, configuration, session or unexpected error

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from tools.ledger_client import __version__
from tools.ledger_client.errors import DigestError
from tools.ledger_client.model import ErrorKind, Failure, OperationOutcome
from tools.ledger_client.render import OutputFormat, format_output
from tools.ledger_client.session import ClientFactory


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def load_parameters(raw: Optional[str] = None, path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Contract parameters from inline JSON or a JSON/YAML file."""
    if raw is None and path is None:
        return None

    if path is not None:
        import yaml
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise CLIError(f"Cannot read parameters file {path}: {e}", exit_code=2) from e
        try:
            # YAML is a superset of JSON
            value = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CLIError(f"Invalid parameters file {path}: {e}", exit_code=2) from e
    else:
        try:
            value = json.loads(raw)  # type: ignore[arg-type]
        except json.JSONDecodeError as e:
            raise CLIError(f"Invalid JSON parameters: {e}", exit_code=2) from e

    if value is None:
        return None
    if not isinstance(value, dict):
        raise CLIError("Contract parameters must be a JSON object", exit_code=2)
    return value


def exit_code_for(outcome: OperationOutcome) -> int:
    if not isinstance(outcome, Failure):
        return 0
    if outcome.kind in (ErrorKind.CONFIGURATION, ErrorKind.SESSION):
        return 2
    return 1


class LedgerCLI:
    """Main CLI application."""

    def __init__(self, factory: Optional[ClientFactory] = None):
        self.factory = factory
        self.parser = argparse.ArgumentParser(
            prog="ledger-client",
            description="Execute contracts and validate assets on a tamper-evident ledger",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"ledger-client {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=["json", "yaml"],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress CLI error messages",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        # execute
        execute = self.subparsers.add_parser("execute", help="Execute a registered contract")
        execute.add_argument("contract", help="Contract name (scoped to the holder id)")
        params = execute.add_mutually_exclusive_group()
        params.add_argument("--params", "-p", help="Contract parameters as a JSON object")
        params.add_argument("--params-file", help="JSON or YAML file with contract parameters")

        # validate
        validate = self.subparsers.add_parser("validate", help="Prove an asset is untampered")
        validate.add_argument("id", help="Asset id (scoped to the holder id)")

        # digest
        digest = self.subparsers.add_parser("digest", help="Uppercase hex digest of a name")
        digest.add_argument("name", help="Name to digest")

        # config
        config = self.subparsers.add_parser("config", help="Inspect client.properties")
        config_sub = config.add_subparsers(dest="subcommand")
        config_sub.add_parser("show", help="Show resolved configuration")
        config_sub.add_parser("validate", help="Validate configuration")
        config_sub.add_parser("schema", help="Export configuration schema")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            return self._dispatch(parsed)

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except Exception as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 2

    def _dispatch(self, args: argparse.Namespace) -> int:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}".rstrip(), exit_code=2)

        return handler(args)

    def _executor(self, args: argparse.Namespace) -> Any:
        from tools.ledger_client.workflows import LedgerExecutor
        return LedgerExecutor(factory=self.factory, fmt=OutputFormat(args.format))

    def _print(self, data: Any, args: argparse.Namespace) -> None:
        print(format_output(data, OutputFormat(args.format)))

    def _handle_execute(self, args: argparse.Namespace) -> int:
        parameters = load_parameters(args.params, args.params_file)
        outcome = self._executor(args).execute_contract(args.contract, parameters)
        return exit_code_for(outcome)

    def _handle_validate(self, args: argparse.Namespace) -> int:
        outcome = self._executor(args).validate_asset(args.id)
        return exit_code_for(outcome)

    def _handle_digest(self, args: argparse.Namespace) -> int:
        from tools.ledger_client.identifiers import hash_hex_string
        try:
            print(hash_hex_string(args.name))
        except DigestError as e:
            raise CLIError(str(e), exit_code=1) from e
        return 0

    # Config handlers
    def _handle_config_show(self, args: argparse.Namespace) -> int:
        from tools.ledger_client.config import load_client_config
        from tools.ledger_client.errors import ConfigurationError
        try:
            config = load_client_config()
        except ConfigurationError as e:
            raise CLIError(str(e), exit_code=2) from e
        self._print(config.to_dict(), args)
        return 0

    def _handle_config_validate(self, args: argparse.Namespace) -> int:
        from tools.ledger_client.config import validate_properties
        errors = validate_properties()
        self._print({"valid": len(errors) == 0, "errors": errors}, args)
        return 0 if not errors else 2

    def _handle_config_schema(self, args: argparse.Namespace) -> int:
        from tools.ledger_client.config import export_schema
        self._print(export_schema(), args)
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    cli = LedgerCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
