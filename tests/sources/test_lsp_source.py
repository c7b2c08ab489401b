"""Tests for cmpcore/sources/lsp_source.py"""

from unittest.mock import AsyncMock, Mock

import pytest
from lsprotocol.types import (
    Command,
    CompletionContext,
    CompletionItem,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    CompletionTriggerKind,
    InitializeResult,
    Position,
    ServerCapabilities,
    TextDocumentContentChangeWholeDocument,
    TextDocumentIdentifier,
)

from cmpcore.context.context import Context
from cmpcore.editor.buffer import BufferEditor
from cmpcore.sources.lsp_source import LanguageClientProvider


@pytest.fixture
def client():
    """Create a mock language client."""
    client = Mock()
    client.initialize_async = AsyncMock(
        return_value=InitializeResult(
            capabilities=ServerCapabilities(
                completion_provider=CompletionOptions(
                    trigger_characters=[".", ":"], resolve_provider=True
                )
            )
        )
    )
    client.text_document_completion_async = AsyncMock(
        return_value=CompletionList(is_incomplete=False, items=[CompletionItem(label="path")])
    )
    client.completion_item_resolve_async = AsyncMock(
        side_effect=lambda item: CompletionItem(label=item.label, detail="resolved")
    )
    client.workspace_execute_command_async = AsyncMock()
    return client


@pytest.fixture
def lsp_editor():
    return BufferEditor("file:///main.py", "os.pa", cursor=(0, 5))


@pytest.fixture
def provider(client, lsp_editor):
    return LanguageClientProvider(client, lsp_editor, language_id="python")


def _params(editor):
    return CompletionParams(
        text_document=TextDocumentIdentifier(uri=editor.uri),
        position=Position(line=0, character=5),
        context=CompletionContext(trigger_kind=CompletionTriggerKind.Invoked),
    )


def test_unavailable_before_initialize(provider):
    assert not provider.is_available()
    assert provider.get_trigger_characters() == []


@pytest.mark.asyncio
async def test_initialize_reads_capabilities(provider, client):
    await provider.initialize(root_uri="file:///")

    assert provider.is_available()
    assert provider.get_trigger_characters() == [".", ":"]
    params = client.initialize_async.call_args.args[0]
    assert params.capabilities.text_document.completion.context_support is True
    client.initialized.assert_called_once()


@pytest.mark.asyncio
async def test_complete_syncs_document_first(provider, client, lsp_editor):
    """didOpen once, then a full didChange per new version."""
    await provider.initialize()
    ctx = Context.capture(lsp_editor)

    result = await provider.complete(_params(lsp_editor), ctx)
    await provider.complete(_params(lsp_editor), ctx)

    assert result.items[0].label == "path"
    client.text_document_did_open.assert_called_once()
    opened = client.text_document_did_open.call_args.args[0].text_document
    assert opened.language_id == "python"
    assert opened.text == "os.pa"
    client.text_document_did_change.assert_not_called()

    lsp_editor.type("t")
    await provider.complete(_params(lsp_editor), ctx)

    change = client.text_document_did_change.call_args.args[0]
    assert isinstance(change.content_changes[0], TextDocumentContentChangeWholeDocument)
    assert change.content_changes[0].text == "os.pat"
    assert change.text_document.version == lsp_editor.version


@pytest.mark.asyncio
async def test_resolve_uses_server_when_supported(provider, client):
    item = CompletionItem(label="path")

    assert await provider.resolve(item) is item
    client.completion_item_resolve_async.assert_not_called()

    await provider.initialize()
    resolved = await provider.resolve(item)

    assert resolved.detail == "resolved"


@pytest.mark.asyncio
async def test_execute_command(provider, client):
    await provider.execute(CompletionItem(label="path"))
    client.workspace_execute_command_async.assert_not_called()

    item = CompletionItem(
        label="path",
        command=Command(title="import", command="auto_import", arguments=["os.path"]),
    )
    await provider.execute(item)

    params = client.workspace_execute_command_async.call_args.args[0]
    assert params.command == "auto_import"
    assert params.arguments == ["os.path"]
