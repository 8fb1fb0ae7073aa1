"""
Ledger Client Configuration

Loads client.properties from the working directory into a typed, immutable
ClientConfig. Nothing is cached: every workflow invocation reads the file
again.

Configuration Sources (in order of precedence):
    1. Environment variables (LEDGER_CLIENT_*)
    2. client.properties in the current working directory
    3. Default values

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import javaproperties

from tools.ledger_client.errors import ConfigurationError

T = TypeVar("T")

PROPERTIES_FILENAME = "client.properties"


@dataclass
class ConfigValue(Generic[T]):
    """
    Declaration of one configuration property.

    Binds a properties key to a default, an optional environment override
    and a validator.
    """
    key: str
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    required: bool = False
    secret: bool = False  # Masked in to_dict() if True

    def resolve(self, properties: Dict[str, str]) -> T:
        """Resolve the value from the environment, properties, then default."""
        if self.env_var and self.env_var in os.environ:
            raw: Optional[str] = os.environ[self.env_var]
        else:
            raw = properties.get(self.key)

        if raw is None or (self.required and raw.strip() == ""):
            if self.required:
                raise ConfigurationError(f"Missing required property: {self.key}")
            return self.default

        try:
            value = self._coerce(raw.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {self.key}: {raw!r}") from e

        if self.validator and not self.validator(value):
            raise ConfigurationError(f"Invalid value for {self.key}: {raw!r}")
        return value

    def _coerce(self, value: str) -> T:
        """Coerce string value to target type."""
        target_type = type(self.default)

        if target_type == bool:
            lowered = value.lower()
            if lowered in ("true", "1", "yes", "on"):
                return True  # type: ignore
            if lowered in ("false", "0", "no", "off", ""):
                return False  # type: ignore
            raise ValueError(value)
        elif target_type == int:
            return int(value)  # type: ignore
        else:
            return value  # type: ignore


PROPERTIES: Dict[str, ConfigValue[Any]] = {
    "cert_holder_id": ConfigValue(
        key="scalar.dl.client.cert_holder_id",
        default="",
        env_var="LEDGER_CLIENT_CERT_HOLDER_ID",
        description="Certificate holder id used to scope contract and asset ids",
        required=True,
    ),
    "cert_version": ConfigValue(
        key="scalar.dl.client.cert_version",
        default=1,
        env_var="LEDGER_CLIENT_CERT_VERSION",
        description="Version of the registered certificate",
        validator=lambda x: x > 0,
    ),
    "server_host": ConfigValue(
        key="scalar.dl.client.server.host",
        default="localhost",
        env_var="LEDGER_CLIENT_SERVER_HOST",
        description="Ledger server host",
        validator=lambda x: x != "",
    ),
    "server_port": ConfigValue(
        key="scalar.dl.client.server.port",
        default=50051,
        env_var="LEDGER_CLIENT_SERVER_PORT",
        description="Ledger server port",
        validator=lambda x: 0 < x <= 65535,
    ),
    "tls_enabled": ConfigValue(
        key="scalar.dl.client.tls.enabled",
        default=False,
        env_var="LEDGER_CLIENT_TLS_ENABLED",
        description="Use TLS when talking to the ledger",
    ),
    "private_key_path": ConfigValue(
        key="scalar.dl.client.private_key_path",
        default="",
        env_var="LEDGER_CLIENT_PRIVATE_KEY_PATH",
        description="PEM private key used to sign requests",
    ),
    "private_key_pem": ConfigValue(
        key="scalar.dl.client.private_key_pem",
        default="",
        description="Inline PEM private key (alternative to private_key_path)",
        secret=True,
    ),
    "authorization_credential": ConfigValue(
        key="scalar.dl.client.authorization.credential",
        default="",
        description="Bearer credential sent with every request",
        secret=True,
    ),
}


@dataclass(frozen=True)
class ClientConfig:
    """Typed view of client.properties."""
    cert_holder_id: str
    cert_version: int = 1
    server_host: str = "localhost"
    server_port: int = 50051
    tls_enabled: bool = False
    private_key_path: str = ""
    private_key_pem: str = field(default="", repr=False)
    authorization_credential: str = field(default="", repr=False)
    source: Optional[Path] = None

    @property
    def base_url(self) -> str:
        scheme = "https" if self.tls_enabled else "http"
        return f"{scheme}://{self.server_host}:{self.server_port}"

    @classmethod
    def from_properties(
        cls,
        properties: Dict[str, str],
        source: Optional[Path] = None,
    ) -> "ClientConfig":
        """Build a config from raw key/value pairs."""
        values = {name: decl.resolve(properties) for name, decl in PROPERTIES.items()}

        key_path = values["private_key_path"]
        if key_path and source is not None and not Path(key_path).is_absolute():
            values["private_key_path"] = str(source.parent / key_path)

        return cls(source=source, **values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with secrets masked."""
        d: Dict[str, Any] = {}
        for name, decl in PROPERTIES.items():
            value = getattr(self, name)
            d[decl.key] = "***" if decl.secret and value else value
        return d


def properties_path(cwd: Optional[Union[str, Path]] = None) -> Path:
    """Location of client.properties for a working directory."""
    base = Path(cwd) if cwd is not None else Path.cwd()
    return base / PROPERTIES_FILENAME


def read_properties(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read a properties file with java.util.Properties semantics.

    Separators are ``=``, ``:`` or whitespace. Leading whitespace is ignored,
    a trailing backslash continues the line and ``\\uXXXX`` escapes are
    decoded. Later duplicates win.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}", path=str(path))

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}", path=str(path)) from e

    try:
        return javaproperties.loads(text)
    except ValueError as e:
        # invalid \u escape
        raise ConfigurationError(f"Malformed configuration file {path}: {e}", path=str(path)) from e


def load_client_config(cwd: Optional[Union[str, Path]] = None) -> ClientConfig:
    """Load client.properties from the working directory."""
    path = properties_path(cwd)
    return ClientConfig.from_properties(read_properties(path), source=path)


def validate_properties(cwd: Optional[Union[str, Path]] = None) -> List[str]:
    """
    Validate client.properties without raising.

    Returns list of validation errors.
    """
    try:
        properties = read_properties(properties_path(cwd))
    except ConfigurationError as e:
        return [str(e)]

    errors: List[str] = []
    for decl in PROPERTIES.values():
        try:
            decl.resolve(properties)
        except ConfigurationError as e:
            errors.append(str(e))

    known = {decl.key for decl in PROPERTIES.values()}
    for key in properties:
        if key.startswith("scalar.dl.client.") and key not in known:
            errors.append(f"Unknown property: {key}")
    return errors


def export_schema() -> Dict[str, Any]:
    """Export configuration schema for documentation."""
    schema: Dict[str, Any] = {"properties": {}}
    for decl in PROPERTIES.values():
        entry: Dict[str, Any] = {
            "type": type(decl.default).__name__,
            "default": str(decl.default),
            "description": decl.description,
            "required": decl.required,
        }
        if decl.env_var:
            entry["env_var"] = decl.env_var
        schema["properties"][decl.key] = entry
    return schema


# Logging settings are environment-only.
LOG_LEVEL = ConfigValue(
    key="log_level",
    default="warning",
    env_var="LEDGER_CLIENT_LOG_LEVEL",
    description="Log level (debug, info, warning, error, critical)",
    validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
)
LOG_FORMAT = ConfigValue(
    key="log_format",
    default="json",
    env_var="LEDGER_CLIENT_LOG_FORMAT",
    description="Log format (json, text)",
    validator=lambda x: x in ("json", "text"),
)


def logging_settings() -> Dict[str, str]:
    """Resolve log level and format, falling back to defaults on bad values."""
    settings: Dict[str, str] = {}
    for decl in (LOG_LEVEL, LOG_FORMAT):
        value = os.environ.get(decl.env_var or "", decl.default).strip().lower()
        if decl.validator and not decl.validator(value):
            value = decl.default
        settings[decl.key] = value
    return settings
