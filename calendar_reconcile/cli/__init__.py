from calendar_reconcile.cli.__main__ import main

__all__ = ["main"]
