"""Allow ``python -m tagflow``."""

from __future__ import annotations

from tagflow.cli.app import main

if __name__ == "__main__":
    main()
