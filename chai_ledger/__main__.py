"""
Main entry point for running chai_ledger as a module.

Usage:
    python -m chai_ledger <command> snapshot.json [options]

This is equivalent to running:
    python -m chai_ledger.cli <command> snapshot.json [options]
"""
from .cli import main

if __name__ == "__main__":
    main()
