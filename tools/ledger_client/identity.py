"""Holder identity for the current command invocation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from tools.ledger_client.config import ClientConfig, load_client_config
from tools.ledger_client.errors import ConfigurationError
from tools.ledger_client.identifiers import derive_asset_id, derive_contract_id


@dataclass(frozen=True)
class IdentityContext:
    """
    The locally configured certificate holder.

    Loaded once per operation and never persisted.
    """
    holder_id: str
    cert_version: int = 1

    def __post_init__(self) -> None:
        if not self.holder_id:
            raise ConfigurationError("Certificate holder id must not be empty")

    @classmethod
    def from_config(cls, config: ClientConfig) -> "IdentityContext":
        return cls(holder_id=config.cert_holder_id, cert_version=config.cert_version)

    def contract_id(self, contract_name: str) -> str:
        return derive_contract_id(contract_name, self.holder_id)

    def asset_id(self, asset_id: str) -> str:
        return derive_asset_id(asset_id, self.holder_id)


def load_identity(cwd: Optional[Union[str, Path]] = None) -> IdentityContext:
    """Load the holder identity from client.properties in cwd."""
    return IdentityContext.from_config(load_client_config(cwd))
