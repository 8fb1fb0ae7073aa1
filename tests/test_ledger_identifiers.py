"""
Tests for per-holder identifier derivation and the hex digest helper.
"""

import hashlib

import pytest

from tools.ledger_client import identifiers
from tools.ledger_client.errors import DigestError
from tools.ledger_client.identifiers import derive_asset_id, derive_contract_id, hash_hex_string
from tools.ledger_client.identity import IdentityContext


class TestContractId:
    """Contract ids are <name>_<holder>."""

    def test_format(self):
        assert derive_contract_id("transfer", "alice") == "transfer_alice"

    def test_deterministic(self):
        assert derive_contract_id("transfer", "alice") == derive_contract_id("transfer", "alice")

    @pytest.mark.parametrize("name", ["transfer", "AddType", "a", "x-y.z"])
    def test_distinct_holders_give_distinct_ids(self, name):
        assert derive_contract_id(name, "alice") != derive_contract_id(name, "bob")

    def test_no_normalization(self):
        assert derive_contract_id("Transfer ", "Alice") == "Transfer _Alice"

    def test_empty_name_is_passed_through(self):
        assert derive_contract_id("", "alice") == "_alice"


class TestAssetId:
    """Asset ids are <holder>-<id>."""

    @pytest.mark.parametrize("asset_id", ["asset-1", "asset-2", "42"])
    def test_format(self, asset_id):
        assert derive_asset_id(asset_id, "alice") == "alice-" + asset_id

    def test_empty_id_is_passed_through(self):
        assert derive_asset_id("", "alice") == "alice-"

    def test_identity_context_helpers(self):
        identity = IdentityContext(holder_id="alice")
        assert identity.contract_id("transfer") == "transfer_alice"
        assert identity.asset_id("asset-2") == "alice-asset-2"


class TestHashHexString:
    """Uppercase 128-bit hex digest."""

    def test_known_value(self):
        assert hash_hex_string("") == "D41D8CD98F00B204E9800998ECF8427E"

    def test_matches_hashlib(self):
        expected = hashlib.md5("asset-name".encode("utf-8")).hexdigest().upper()
        assert hash_hex_string("asset-name") == expected

    def test_fixed_length_uppercase(self):
        digest = hash_hex_string("some rather long name " * 20)
        assert len(digest) == 32
        assert digest == digest.upper()

    def test_none_is_absent(self):
        assert hash_hex_string(None) is None

    def test_unavailable_algorithm_raises_digest_error(self, monkeypatch):
        monkeypatch.setattr(identifiers, "DIGEST_ALGORITHM", "no-such-hash")
        with pytest.raises(DigestError):
            hash_hex_string("name")
