"""Allow ``python -m gamedash``."""

from __future__ import annotations

from gamedash.cli.main import main

main()
