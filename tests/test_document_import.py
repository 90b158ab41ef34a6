from datetime import datetime

import pytest

from growth_context.models.core import DocumentClass, EmotionTag, Tone
from growth_context.services import document_import
from growth_context.services.conversation_memory import ConversationMemoryStore
from growth_context.services.document_import import (DocumentImportService, chunk, classify_document,
                                                     extract_document_insights, key_topics, overall_tone)
from growth_context.services.document_parser import DocumentImportError, DocumentMetadata, DocumentParser, ParsedDocument

SENTENCE = 'Today I worked on my goals and felt a steady sense of progress.'

THERAPY_NOTES = ('Therapy session notes. My therapist and I talked about treatment options for a while.\n\n'
                 'I learned that I feel happy when I rest properly. This was a real breakthrough for me.')


def test_long_document_is_split_into_bounded_chunks():
    content = ' '.join([SENTENCE] * 80)
    assert len(content) > 5000

    chunks = chunk(content, 1000)

    assert len(chunks) >= 5
    assert all(len(c) <= 1000 for c in chunks)


def test_multi_paragraph_document_is_split_into_bounded_chunks():
    content = '\n\n'.join(' '.join([SENTENCE] * 10) for _ in range(8))
    assert len(content) >= 5000

    chunks = chunk(content, 1000)

    assert len(chunks) >= 5
    assert all(0 < len(c) <= 1000 for c in chunks)
    assert all(c.strip() for c in chunks)
    assert ' '.join(chunks).split() == content.split()


def test_chunks_cover_the_document_in_order():
    paragraphs = [
        ' '.join([SENTENCE] * 3),
        ' '.join([SENTENCE] * 30),
        'A short closing paragraph that still has more than fifty characters.',
    ]
    content = '\n\n'.join(paragraphs)

    chunks = chunk(content, 500)

    assert ' '.join(chunks).split() == content.split()
    assert all(len(c) <= 500 for c in chunks)


def test_short_paragraphs_are_packed_together():
    first = 'The first paragraph talks about my morning routine today.'
    second = 'The second paragraph is about the evening walk with my dog.'

    assert chunk(f'{first}\n\n{second}', 1000) == [f'{first}\n\n{second}']


def test_tiny_chunks_are_dropped():
    assert chunk('short note', 1000) == []
    assert chunk('', 1000) == []
    assert chunk(None, 1000) == []


def test_overlong_words_are_sliced():
    assert chunk('a' * 2500, 1000) == ['a' * 1000, 'a' * 1000, 'a' * 500]


def test_document_insights():
    insights = extract_document_insights(THERAPY_NOTES)

    assert insights.document_type == DocumentClass.THERAPY_NOTES
    assert insights.overall_tone == Tone.POSITIVE
    assert insights.growth_indicators == ['learned', 'breakthrough']
    assert [s.section for s in insights.emotional_journey] == [1, 2]
    assert EmotionTag.HAPPY in insights.emotional_journey[1].emotions


def test_key_topics_count_long_words():
    assert key_topics('growth growth growth habits habits daily and the') == [('growth', 3), ('habits', 2), ('daily', 1)]


def test_tone():
    assert overall_tone('bad awful day') == Tone.NEGATIVE
    assert overall_tone('good bad') == Tone.NEUTRAL


def test_unmatched_document_is_general():
    assert classify_document('lorem ipsum dolor sit amet') == DocumentClass.GENERAL_DOCUMENT


def test_integrate_stores_chunks_document_and_patterns():
    store = ConversationMemoryStore()
    parsed = DocumentParser().parse('notes.txt', THERAPY_NOTES.encode('utf-8'))
    imported_at = datetime(2024, 5, 1, 9)

    result = DocumentImportService().integrate(parsed, store, imported_at=imported_at)

    assert result.chunks_processed == len(store.imported_chunks) == 1
    assert result.summary.startswith(f'therapy notes ({parsed.metadata.word_count} words). Overall tone: positive.')
    assert 'Growth themes: learned, breakthrough.' in result.summary
    assert result.imported_at == imported_at

    document = store.imported_documents[0]
    assert document.title == 'notes.txt'
    assert document.document_type == DocumentClass.THERAPY_NOTES
    assert [p.content for p in store.imported_patterns] == ['learned', 'breakthrough']
    assert store.imported_chunks[0].source == 'notes.txt'


def test_integrate_rejects_empty_content():
    store = ConversationMemoryStore()
    parsed = ParsedDocument(content='   ', metadata=DocumentMetadata(title='empty.txt', size_bytes=3, type='text', word_count=0))

    with pytest.raises(DocumentImportError):
        DocumentImportService().integrate(parsed, store)

    assert len(store.imported_chunks) == 0
    assert store.imported_documents == []


def test_integrate_leaves_store_untouched_on_failure(monkeypatch):

    def explode(content):
        raise RuntimeError('analysis failed')

    monkeypatch.setattr(document_import, 'extract_document_insights', explode)
    store = ConversationMemoryStore()
    parsed = DocumentParser().parse('notes.txt', THERAPY_NOTES.encode('utf-8'))

    with pytest.raises(DocumentImportError):
        DocumentImportService().integrate(parsed, store)

    assert len(store.imported_chunks) == 0
    assert len(store.imported_patterns) == 0
    assert store.imported_documents == []
