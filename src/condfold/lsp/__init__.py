"""
condfold Language Server Protocol (LSP) implementation.

This package publishes constant-condition warnings as editor
diagnostics while Python files are edited.

Usage:
    # Start the LSP server (stdio mode)
    condfold-lsp

    # Or run as a module
    python -m condfold.lsp
"""

from condfold.lsp.server import CondFoldLanguageServer, main

__all__ = [
    "CondFoldLanguageServer",
    "main",
]
