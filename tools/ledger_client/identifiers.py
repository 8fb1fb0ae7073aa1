"""Backend identifier derivation.

Contracts and assets are registered per certificate holder, so the same
logical name maps to a different ledger object for every holder:

- contract id: ``<contract name>_<holder id>``
- asset id:    ``<holder id>-<asset id>``

No normalization or escaping is applied; names must already be safe for the
ledger. Empty segments are passed through and left for the ledger to reject.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from tools.ledger_client.errors import DigestError

DIGEST_ALGORITHM = "md5"


def derive_contract_id(contract_name: str, holder_id: str) -> str:
    return contract_name + "_" + holder_id


def derive_asset_id(asset_id: str, holder_id: str) -> str:
    return holder_id + "-" + asset_id


def hash_hex_string(name: Optional[str]) -> Optional[str]:
    """Fixed-length uppercase hex label for an arbitrary string.

    Not a security primitive. Returns None for None.

    Raises:
        DigestError: if the digest algorithm is unavailable in this runtime
    """
    if name is None:
        return None
    try:
        md = hashlib.new(DIGEST_ALGORITHM)
    except ValueError as e:
        raise DigestError(f"Digest algorithm {DIGEST_ALGORITHM} unavailable: {e}") from e
    md.update(name.encode("utf-8"))
    return md.hexdigest().upper()
