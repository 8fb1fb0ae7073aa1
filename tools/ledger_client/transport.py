"""
Ledger HTTP Gateway Client

Default LedgerClient implementation. Talks JSON over HTTP to a ledger
gateway and signs every request with the certificate holder's private key.

Endpoints:
    POST /contracts/execute   {"result": object | null}
    POST /ledger/validate     {"status_code": int, "detail": string}

Error bodies carry {"status_code": int, "error_message": string}. Every body
is checked against a JSON Schema before it is interpreted. No timeout is
imposed and nothing is retried.

Copyright (c) 2024 Momentum. All rights reserved.
"""

from __future__ import annotations

import base64
import json
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import httpx
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from jsonschema import Draft202012Validator

from tools.ledger_client.config import ClientConfig
from tools.ledger_client.errors import BusinessExecutionError, SessionError
from tools.ledger_client.model import ContractResult, StatusCode, ValidationResult
from tools.ledger_client.observability import LedgerLayer, get_logger
from tools.ledger_client.session import LedgerClient

logger = get_logger("http", LedgerLayer.TRANSPORT)

EXECUTE_PATH = "/contracts/execute"
VALIDATE_PATH = "/ledger/validate"

SigningKey = Union[ec.EllipticCurvePrivateKey, Ed25519PrivateKey]


EXECUTE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "result": {"type": ["object", "null"]},
    },
}

VALIDATE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["status_code"],
    "properties": {
        "status_code": {"type": "integer"},
        "detail": {"type": ["string", "null"]},
    },
}

ERROR_RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["status_code"],
    "properties": {
        "status_code": {"type": "integer"},
        "error_message": {"type": ["string", "null"]},
    },
}

_EXECUTE_VALIDATOR = Draft202012Validator(EXECUTE_RESPONSE_SCHEMA)
_VALIDATE_VALIDATOR = Draft202012Validator(VALIDATE_RESPONSE_SCHEMA)
_ERROR_VALIDATOR = Draft202012Validator(ERROR_RESPONSE_SCHEMA)


def canonical_json_bytes(obj: Any) -> bytes:
    """Sorted keys, no whitespace, UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def load_signing_key(pem: bytes) -> SigningKey:
    """Load an EC or Ed25519 private key from PEM bytes."""
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SessionError(f"Unloadable private key: {e}") from e
    if not isinstance(key, (ec.EllipticCurvePrivateKey, Ed25519PrivateKey)):
        raise SessionError(f"Unsupported private key type: {type(key).__name__}")
    return key


def sign(key: SigningKey, data: bytes) -> str:
    """Base64 signature over data (ECDSA/SHA-256 or Ed25519)."""
    if isinstance(key, Ed25519PrivateKey):
        raw = key.sign(data)
    else:
        raw = key.sign(data, ec.ECDSA(hashes.SHA256()))
    return base64.b64encode(raw).decode("ascii")


def _check_schema(validator: Draft202012Validator, data: Any, path: str) -> None:
    errors = [
        f"{error.json_path}: {error.message}"
        for error in validator.iter_errors(data)
    ]
    if errors:
        raise SessionError(f"Malformed response from {path}: {'; '.join(errors)}")


class HttpLedgerClient(LedgerClient):
    """LedgerClient speaking JSON over HTTP to a ledger gateway."""

    def __init__(
        self,
        base_url: str,
        holder_id: str,
        cert_version: int = 1,
        signing_key: Optional[SigningKey] = None,
        credential: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.holder_id = holder_id
        self.cert_version = cert_version
        self._signing_key = signing_key

        headers = {"Accept": "application/json"}
        if credential:
            headers["Authorization"] = f"Bearer {credential}"

        self._http = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=None,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "HttpLedgerClient":
        """
        Build a client from configuration.

        Raises:
            SessionError: if the configured private key cannot be loaded
        """
        signing_key: Optional[SigningKey] = None
        if config.private_key_pem:
            signing_key = load_signing_key(config.private_key_pem.encode("utf-8"))
        elif config.private_key_path:
            try:
                pem = Path(config.private_key_path).read_bytes()
            except OSError as e:
                raise SessionError(f"Cannot read private key {config.private_key_path}: {e}") from e
            signing_key = load_signing_key(pem)

        return cls(
            base_url=config.base_url,
            holder_id=config.cert_holder_id,
            cert_version=config.cert_version,
            signing_key=signing_key,
            credential=config.authorization_credential,
            transport=transport,
        )

    def _post(self, path: str, body: Dict[str, Any]) -> Tuple[int, Any]:
        body = dict(body)
        body["cert_holder_id"] = self.holder_id
        body["cert_version"] = self.cert_version
        body["nonce"] = uuid.uuid4().hex
        if self._signing_key is not None:
            body["signature"] = sign(self._signing_key, canonical_json_bytes(body))

        logger.debug("POST", path=path, nonce=body["nonce"])
        try:
            response = self._http.post(path, json=body)
        except httpx.HTTPError as e:
            raise SessionError(f"Ledger request to {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise SessionError(
                f"Malformed response from {path}: HTTP {response.status_code} body is not JSON"
            ) from e
        return response.status_code, data

    def execute_contract(self, contract_id: str, argument: Dict[str, Any]) -> ContractResult:
        status, data = self._post(EXECUTE_PATH, {
            "contract_id": contract_id,
            "contract_argument": argument,
        })

        if not 200 <= status < 300:
            _check_schema(_ERROR_VALIDATOR, data, EXECUTE_PATH)
            message = data.get("error_message") or f"Contract {contract_id} failed"
            raise BusinessExecutionError(message, status_code=data["status_code"])

        _check_schema(_EXECUTE_VALIDATOR, data, EXECUTE_PATH)
        return ContractResult(payload=data.get("result"))

    def validate_ledger(self, asset_id: str) -> ValidationResult:
        status, data = self._post(VALIDATE_PATH, {"asset_id": asset_id})

        if not 200 <= status < 300:
            _check_schema(_ERROR_VALIDATOR, data, VALIDATE_PATH)
            code = data["status_code"]
            if code == StatusCode.OK:
                # an error response never proves an asset untampered
                code = status
            return ValidationResult(status_code=code, detail=data.get("error_message"))

        _check_schema(_VALIDATE_VALIDATOR, data, VALIDATE_PATH)
        return ValidationResult(status_code=data["status_code"], detail=data.get("detail"))

    def close(self) -> None:
        self._http.close()
