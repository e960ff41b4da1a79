"""
condfold Language Server Protocol (LSP) Server.

This module implements an LSP server using pygls (Python Language
Server). It keeps constant-condition diagnostics up to date while
Python files are edited:

- Document synchronization (open, change, save, close)
- Diagnostics (always-true and always-false conditions, syntax errors)

Project settings (``[tool.condfold]`` in ``pyproject.toml`` or a
``condfold.toml``) are looked up from each document's directory.

Usage:
    # Start the server in stdio mode (for IDE integration)
    condfold-lsp

    # Start in TCP mode (for debugging)
    condfold-lsp --tcp --port 2087
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

from lsprotocol import types
from pygls.lsp.server import LanguageServer
from pygls.uris import to_fs_path

from condfold import __version__
from condfold.compiler.linter import LintConfiguration
from condfold.config import load_configuration
from condfold.lsp.diagnostics import get_diagnostics_for_document
from condfold.utils.errors import ConfigurationError

logger = logging.getLogger("condfold-lsp")


class CondFoldLanguageServer(LanguageServer):
    """
    Language Server Protocol implementation for condfold.

    Each open document is linted on open, change and save, and its
    diagnostics are cleared when it is closed. The notification handlers
    are registered by ``create_server``.
    """

    def __init__(self) -> None:
        """Initialize the condfold language server."""
        super().__init__(
            name="condfold-lsp",
            version=f"v{__version__}",
        )

        # Lint configuration cache (config directory -> configuration)
        self._configs: dict[Path, LintConfiguration] = {}

    def _get_config(self, uri: str) -> Optional[LintConfiguration]:
        """Load the lint configuration that applies to a document."""
        if not uri.startswith("file:"):
            return None  # unsaved buffers have no project
        fs_path = to_fs_path(uri)
        if fs_path is None:
            return None

        directory = Path(fs_path).parent
        if directory not in self._configs:
            try:
                self._configs[directory] = load_configuration(start=directory).lint
            except ConfigurationError as e:
                logger.warning("Using default lint settings for %s: %s", uri, e.message)
                self._configs[directory] = LintConfiguration()
        return self._configs[directory]

    def _lint_document(self, uri: str, text: str) -> None:
        """Lint a document and publish the results."""
        diagnostics = get_diagnostics_for_document(text, uri, self._get_config(uri))
        self._publish_diagnostics(uri, diagnostics)

    def _publish_diagnostics(self, uri: str, diagnostics: list[types.Diagnostic]) -> None:
        """Publish diagnostics to the client."""
        self.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )

    # =========================================================================
    # Document Synchronization
    # =========================================================================

    def _on_did_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """Handle document open notification."""
        document = params.text_document
        logger.info("Document opened: %s", document.uri)
        self._lint_document(document.uri, document.text)

    def _on_did_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """Handle document change notification."""
        uri = params.text_document.uri

        doc = self.workspace.get_text_document(uri)
        if doc is None:
            return

        logger.debug("Document changed: %s", uri)
        self._lint_document(uri, doc.source)

    def _on_did_save(self, params: types.DidSaveTextDocumentParams) -> None:
        """Handle document save notification."""
        uri = params.text_document.uri
        logger.info("Document saved: %s", uri)

        # Settings may have been edited
        self._configs.clear()

        doc = self.workspace.get_text_document(uri)
        if doc:
            self._lint_document(uri, doc.source)

    def _on_did_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Handle document close notification."""
        uri = params.text_document.uri
        logger.info("Document closed: %s", uri)
        self._publish_diagnostics(uri, [])


# =============================================================================
# Server Creation and Main Entry Point
# =============================================================================


def create_server() -> CondFoldLanguageServer:
    """Create and configure a condfold language server instance."""
    server = CondFoldLanguageServer()

    @server.feature(types.TEXT_DOCUMENT_DID_OPEN)
    def did_open(ls: CondFoldLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
        ls._on_did_open(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(ls: CondFoldLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
        ls._on_did_change(params)

    @server.feature(types.TEXT_DOCUMENT_DID_SAVE)
    def did_save(ls: CondFoldLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
        ls._on_did_save(params)

    @server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(ls: CondFoldLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
        ls._on_did_close(params)

    @server.feature(types.INITIALIZED)
    def on_initialized(
        params: types.InitializedParams,  # noqa: ARG001
    ) -> None:
        """Handle initialized notification."""
        logger.info("condfold Language Server initialized successfully")

    @server.feature(types.SHUTDOWN)
    def on_shutdown(
        params: None,  # noqa: ARG001
    ) -> None:
        """Handle shutdown request."""
        logger.info("Shutting down condfold Language Server")

    return server


def main(argv: Optional[list[str]] = None) -> None:
    """
    Main entry point for the condfold language server.

    Starts the server in stdio mode for IDE integration.
    """
    parser = argparse.ArgumentParser(
        description="condfold Language Server",
        prog="condfold-lsp",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Start server in TCP mode instead of stdio",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to in TCP mode (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="Port to listen on in TCP mode (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="info",
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    server = create_server()

    if args.tcp:
        logger.info("Starting condfold LSP in TCP mode on %s:%s", args.host, args.port)
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting condfold LSP in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
