# src/pmrc/meta.py
"""Program identity, shared by the CLI and the logger setup."""

PROGRAM_PACKAGE = "pmrc"
PROGRAM_SCRIPT = "pmrc"
PROGRAM_DISPLAY = "pmrc"
PROGRAM_ENV = "PMRC"
