"""Entry point for ``python -m reelsync``."""

from reelsync.cli import main

if __name__ == "__main__":
    main()
