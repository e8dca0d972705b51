"""Allow running as ``python -m folder_reconciler``."""

from .cli import main

if __name__ == "__main__":
    main()
