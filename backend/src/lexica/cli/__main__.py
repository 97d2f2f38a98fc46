"""CLI entry point for lexica.cli module.

Enables execution via: python -m lexica.cli
"""

from lexica.cli.enqueue_words import main

if __name__ == "__main__":
    raise SystemExit(main())
