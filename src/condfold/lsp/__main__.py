"""
Entry point for running the condfold LSP server as a module.

Usage:
    python -m condfold.lsp
    python -m condfold.lsp --tcp --port 2087
"""

from condfold.lsp.server import main

if __name__ == "__main__":
    main()
