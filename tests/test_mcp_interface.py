import pytest
from conftest import FakeModel

from growth_context import mcp_interface


@pytest.fixture(autouse=True)
def isolated_engines(monkeypatch):
    monkeypatch.setattr(mcp_interface, '_model_client', FakeModel())
    monkeypatch.setattr(mcp_interface, '_engines', {})


def test_engine_is_created_once_per_user():
    engine = mcp_interface.get_engine('user-1')

    assert mcp_interface.get_engine('user-1') is engine
    assert mcp_interface.get_engine('user-2') is not engine
    assert engine.session.tracking.current_session_id is not None


def test_engine_requires_user_id():
    with pytest.raises(ValueError):
        mcp_interface.get_engine('  ')


@pytest.mark.parametrize('title', ['notes.pdf', 'notes.json', 'Morning pages'])
def test_pasted_text_is_imported_as_plain_text(title):
    content = ('Today I reflected on my goals and felt a steady sense of progress at work.\n\n'
               'Tomorrow I want to keep the morning routine going and rest properly.')

    result = mcp_interface.import_text('user-1', title, content)

    assert result.chunks_processed >= 1
    assert result.metadata.title == title
    assert result.metadata.type == 'text'
    document = mcp_interface.get_engine('user-1').memory.imported_documents[0]
    assert document.title == title
