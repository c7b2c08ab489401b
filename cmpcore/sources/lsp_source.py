"""
Completion provider backed by a language server.

Wraps a pygls LanguageClient: keeps the host document in sync with the
server and forwards completion, resolve and command execution requests.

Usage:
    client = LanguageClient("cmpcore", "0.1.0")
    await client.start_io("pylsp")
    provider = LanguageClientProvider(client, editor)
    await provider.initialize(root_uri="file:///project")
    completion.register_source("lsp", provider)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lsprotocol.types import (
    ClientCapabilities,
    CompletionClientCapabilities,
    CompletionItem,
    CompletionList,
    CompletionParams,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    ExecuteCommandParams,
    InitializeParams,
    InitializedParams,
    ServerCapabilities,
    TextDocumentClientCapabilities,
    TextDocumentContentChangeWholeDocument,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)
from pygls.lsp.client import LanguageClient

from cmpcore.sources.provider import CompletionProvider

if TYPE_CHECKING:
    from cmpcore.context.context import Context
    from cmpcore.editor.host import EditorHost


def _client_capabilities() -> ClientCapabilities:
    return ClientCapabilities(
        text_document=TextDocumentClientCapabilities(
            completion=CompletionClientCapabilities(context_support=True),
        ),
    )


class LanguageClientProvider(CompletionProvider):
    """Provider that asks a language server for completions."""

    def __init__(
        self,
        client: LanguageClient,
        editor: EditorHost,
        language_id: str = "plaintext",
    ) -> None:
        self.client = client
        self.editor = editor
        self.language_id = language_id
        self.server_capabilities: ServerCapabilities | None = None

        # uri -> last version sent to the server
        self._synced: dict[str, int] = {}

    @property
    def name(self) -> str:
        return "language_client"

    async def initialize(self, root_uri: str | None = None) -> ServerCapabilities:
        """Run the initialize handshake and remember the server capabilities."""
        result = await self.client.initialize_async(
            InitializeParams(
                process_id=None,
                root_uri=root_uri,
                capabilities=_client_capabilities(),
            )
        )
        self.client.initialized(InitializedParams())
        self.server_capabilities = result.capabilities
        return result.capabilities

    def is_available(self) -> bool:
        return (
            self.server_capabilities is not None
            and self.server_capabilities.completion_provider is not None
        )

    def get_trigger_characters(self) -> list[str]:
        if not self.is_available():
            return []
        options = self.server_capabilities.completion_provider  # pyright: ignore
        return list(options.trigger_characters or [])

    def _can_resolve(self) -> bool:
        if not self.is_available():
            return False
        options = self.server_capabilities.completion_provider  # pyright: ignore
        return bool(options.resolve_provider)

    def sync_document(self) -> None:
        """Send didOpen once per buffer, then a full didChange per new version."""
        uri = self.editor.uri
        version = self.editor.version
        synced = self._synced.get(uri)

        if synced is None:
            self.client.text_document_did_open(
                DidOpenTextDocumentParams(
                    text_document=TextDocumentItem(
                        uri=uri,
                        language_id=self.language_id,
                        version=version,
                        text=self.editor.get_text(),
                    )
                )
            )
        elif synced != version:
            self.client.text_document_did_change(
                DidChangeTextDocumentParams(
                    text_document=VersionedTextDocumentIdentifier(uri=uri, version=version),
                    content_changes=[
                        TextDocumentContentChangeWholeDocument(text=self.editor.get_text())
                    ],
                )
            )
        self._synced[uri] = version

    async def complete(
        self, params: CompletionParams, context: Context
    ) -> CompletionList | list[CompletionItem] | None:
        self.sync_document()
        return await self.client.text_document_completion_async(params)

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        if not self._can_resolve():
            return item
        return await self.client.completion_item_resolve_async(item)

    async def execute(self, item: CompletionItem) -> None:
        if item.command is None:
            return
        await self.client.workspace_execute_command_async(
            ExecuteCommandParams(
                command=item.command.command,
                arguments=item.command.arguments,
            )
        )
