"""Entry point for ``python -m approval_scanner``."""

from approval_scanner.cli import main


raise SystemExit(main())
