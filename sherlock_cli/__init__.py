"""Sherlock CLI: docs, bug reports, Q&A and import maps for a local codebase."""

__version__ = "0.1.0"
