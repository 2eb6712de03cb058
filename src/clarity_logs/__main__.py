"""Module entrypoint.

Allows:
    python -m clarity_logs
"""

from __future__ import annotations

from clarity_logs.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
