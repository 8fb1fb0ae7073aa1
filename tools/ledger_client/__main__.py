"""Ledger client entry point: python -m tools.ledger_client"""

from __future__ import annotations

import sys

from tools.ledger_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
