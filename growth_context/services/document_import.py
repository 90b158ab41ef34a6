"""
Document Import Pipeline: chunking, per-chunk analysis, document-level
insights and integration into a session's conversation memory.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..models.core import ChunkAnalysis, DocumentChunk, DocumentClass, EmotionTag, ImportedDocument, ImportedPattern, Tone
from ..utils.config import DocumentConfig
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import now, to_iso
from .conversation_memory import ConversationMemoryStore
from .document_parser import DocumentImportError, DocumentMetadata, ParsedDocument
from .signal_extraction import analyze, detect_emotion_mentions, detect_themes

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_MIN_CHUNK_LENGTH = 50

POSITIVE_WORDS = frozenset({'good', 'great', 'amazing', 'wonderful', 'excellent', 'fantastic', 'love', 'happy'})
NEGATIVE_WORDS = frozenset({'bad', 'terrible', 'awful', 'horrible', 'hate', 'sad', 'angry', 'frustrated'})
TONE_RATIO = 1.5

GROWTH_KEYWORDS = ('learned', 'grew', 'improved', 'developed', 'progressed', 'achieved', 'overcame', 'breakthrough',
                   'insight', 'realization', 'understanding')

# Declaration order is the tie-break order
DOCUMENT_TYPE_KEYWORDS: Tuple[Tuple[DocumentClass, Tuple[str, ...]], ...] = (
    (DocumentClass.THERAPY_NOTES, ('therapy', 'therapist', 'session', 'counseling', 'treatment')),
    (DocumentClass.JOURNAL, ('dear diary', 'today i', 'feeling', 'mood', 'reflection')),
    (DocumentClass.BOOK_HIGHLIGHTS, ('highlight', 'quote', 'author', 'chapter', 'page')),
    (DocumentClass.WORK_NOTES, ('meeting', 'project', 'deadline', 'team', 'work')),
    (DocumentClass.PERSONAL_DEVELOPMENT, ('goal', 'growth', 'improve', 'development', 'progress')),
)

KEY_TOPIC_COUNT = 10
KEY_TOPIC_MIN_LENGTH = 5
SUMMARY_TOPIC_COUNT = 3

_PARAGRAPH_SPLIT = re.compile(r'\n\s*\n')
_SENTENCE_SPLIT = re.compile(r'(?<=[.!?])\s+')
_NON_WORD = re.compile(r'[^\w\s]')


@dataclass(frozen=True)
class JourneySection:
    section: int  # 1-based paragraph index
    emotions: List[EmotionTag]

    def to_dict(self) -> Dict[str, Any]:
        return {'section': self.section, 'emotions': [e.value for e in self.emotions]}


@dataclass(frozen=True)
class DocumentInsights:
    overall_tone: Tone
    key_topics: List[Tuple[str, int]]
    emotional_journey: List[JourneySection]
    growth_indicators: List[str]
    document_type: DocumentClass

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall_tone': self.overall_tone.value,
            'key_topics': [{'word': word, 'count': count} for word, count in self.key_topics],
            'emotional_journey': [section.to_dict() for section in self.emotional_journey],
            'growth_indicators': list(self.growth_indicators),
            'document_type': self.document_type.value,
        }


@dataclass
class ImportResult:
    chunks_processed: int
    summary: str
    insights: DocumentInsights
    metadata: DocumentMetadata
    imported_at: datetime
    chunks: List[DocumentChunk] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chunks_processed': self.chunks_processed,
            'summary': self.summary,
            'insights': self.insights.to_dict(),
            'metadata': {
                'title': self.metadata.title,
                'type': self.metadata.type,
                'word_count': self.metadata.word_count,
                'size_bytes': self.metadata.size_bytes,
            },
            'imported_at': to_iso(self.imported_at),
        }


# Chunking

def _split_words(sentence: str, max_length: int) -> Iterator[str]:
    """Pack words into pieces of at most ``max_length``; a single overlong word is sliced."""
    current = ''
    for word in sentence.split():
        while len(word) > max_length:
            if current:
                yield current
                current = ''
            yield word[:max_length]
            word = word[max_length:]
        if not word:
            continue
        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_length:
            current += ' ' + word
        else:
            yield current
            current = word
    if current:
        yield current


def _split_paragraph(paragraph: str, max_length: int) -> Iterator[str]:
    for sentence in _SENTENCE_SPLIT.split(paragraph):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) <= max_length:
            yield sentence
        else:
            yield from _split_words(sentence, max_length)


def chunk(content: Optional[str], max_length: int = DEFAULT_CHUNK_SIZE,
          min_length: int = DEFAULT_MIN_CHUNK_LENGTH) -> List[str]:
    """
    Split text into ordered chunks of at most ``max_length`` characters.

    Paragraphs (blank-line separated) are kept whole when they fit. Longer
    paragraphs are split on sentence boundaries, and sentences that are still
    too long on word boundaries. Pieces are then packed greedily in order.
    Chunks shorter than ``min_length`` are dropped.

    Args:
        content: Document text
        max_length: Maximum chunk length in characters
        min_length: Minimum length of a kept chunk

    Returns:
        List of chunk strings in document order
    """
    if max_length < 1:
        raise ValueError(f'max_length must be positive, got {max_length}')
    if not content or not content.strip():
        return []

    # (separator used when appended to a non-empty chunk, piece)
    pieces: List[Tuple[str, str]] = []
    for paragraph in _PARAGRAPH_SPLIT.split(content):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if len(paragraph) <= max_length:
            pieces.append(('\n\n', paragraph))
            continue
        for index, piece in enumerate(_split_paragraph(paragraph, max_length)):
            pieces.append(('\n\n' if index == 0 else ' ', piece))

    chunks: List[str] = []
    current = ''
    for separator, piece in pieces:
        if not current:
            current = piece
        elif len(current) + len(separator) + len(piece) <= max_length:
            current += separator + piece
        else:
            chunks.append(current)
            current = piece
    if current:
        chunks.append(current)

    return [c for c in chunks if len(c) >= min_length]


def analyze_chunk(chunk_text: str, source: str, timestamp: Optional[datetime] = None) -> DocumentChunk:
    """Run the signal extractor over one chunk, keeping per-emotion and per-theme hits."""
    analysis = ChunkAnalysis(signals=analyze(chunk_text),
                             emotions=detect_emotion_mentions(chunk_text),
                             themes=detect_themes(chunk_text))
    return DocumentChunk(content=chunk_text, source=source, analysis=analysis, timestamp=timestamp or now())


# Document-level insights

def overall_tone(content: str) -> Tone:
    words = content.lower().split()
    positive = sum(1 for word in words if word in POSITIVE_WORDS)
    negative = sum(1 for word in words if word in NEGATIVE_WORDS)

    if positive > negative * TONE_RATIO:
        return Tone.POSITIVE
    if negative > positive * TONE_RATIO:
        return Tone.NEGATIVE
    return Tone.NEUTRAL


def key_topics(content: str) -> List[Tuple[str, int]]:
    """Most frequent words of 5+ characters, ties in first-seen order."""
    words = _NON_WORD.sub(' ', content.lower()).split()
    counts = Counter(word for word in words if len(word) >= KEY_TOPIC_MIN_LENGTH)
    return counts.most_common(KEY_TOPIC_COUNT)


def emotional_journey(content: str) -> List[JourneySection]:
    return [
        JourneySection(section=index + 1, emotions=[m.emotion for m in detect_emotion_mentions(paragraph)])
        for index, paragraph in enumerate(_PARAGRAPH_SPLIT.split(content))
    ]


def growth_indicators(content: str) -> List[str]:
    lowered = content.lower()
    return [keyword for keyword in GROWTH_KEYWORDS if keyword in lowered]


def classify_document(content: str) -> DocumentClass:
    lowered = content.lower()
    best, best_score = DocumentClass.GENERAL_DOCUMENT, 0
    for document_class, keywords in DOCUMENT_TYPE_KEYWORDS:
        score = sum(1 for keyword in keywords if keyword in lowered)
        if score > best_score:
            best, best_score = document_class, score
    return best


def extract_document_insights(content: str) -> DocumentInsights:
    return DocumentInsights(overall_tone=overall_tone(content),
                            key_topics=key_topics(content),
                            emotional_journey=emotional_journey(content),
                            growth_indicators=growth_indicators(content),
                            document_type=classify_document(content))


def document_summary(word_count: int, insights: DocumentInsights) -> str:
    parts = [f"{insights.document_type.value.replace('_', ' ')} ({word_count} words).",
             f'Overall tone: {insights.overall_tone.value}.']
    if insights.key_topics:
        parts.append(f"Key topics: {', '.join(w for w, _ in insights.key_topics[:SUMMARY_TOPIC_COUNT])}.")
    if insights.growth_indicators:
        parts.append(f"Growth themes: {', '.join(insights.growth_indicators[:SUMMARY_TOPIC_COUNT])}.")
    parts.append("This content has been integrated into your companion's memory for more personalized conversations.")
    return ' '.join(parts)


class DocumentImportService:
    """Integrates parsed documents into a conversation memory store."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, min_chunk_length: int = DEFAULT_MIN_CHUNK_LENGTH):
        self.chunk_size = chunk_size
        self.min_chunk_length = min_chunk_length

    @classmethod
    def from_config(cls, document_config: DocumentConfig) -> 'DocumentImportService':
        return cls(chunk_size=document_config.chunk_size, min_chunk_length=document_config.min_chunk_length)

    def integrate(self, parsed_document: ParsedDocument, memory_store: ConversationMemoryStore,
                  imported_at: Optional[datetime] = None) -> ImportResult:
        """
        Chunk, analyze and store a parsed document.

        Everything is computed before the store is touched, so a failure
        leaves the memory store exactly as it was.

        Args:
            parsed_document: Output of DocumentParser.parse
            memory_store: Session memory receiving chunks, document record and patterns
            imported_at: Import time (defaults to now)

        Returns:
            ImportResult describing what was stored

        Raises:
            DocumentImportError: If the document is empty or analysis fails
        """
        content = parsed_document.content
        metadata = parsed_document.metadata
        if not content or not content.strip():
            raise DocumentImportError(f'Document {metadata.title} has no text content')

        imported_at = imported_at or now()
        try:
            chunks = [
                analyze_chunk(text, metadata.title, imported_at)
                for text in chunk(content, self.chunk_size, self.min_chunk_length)
            ]
            insights = extract_document_insights(content)
            summary = document_summary(metadata.word_count, insights)

            top_words = ', '.join(w for w, _ in insights.key_topics[:SUMMARY_TOPIC_COUNT])
            document = ImportedDocument(title=metadata.title,
                                        type=metadata.type,
                                        imported_at=imported_at,
                                        word_count=metadata.word_count,
                                        size_bytes=metadata.size_bytes,
                                        document_type=insights.document_type,
                                        overall_tone=insights.overall_tone,
                                        summary=top_words or 'Document imported')
            patterns = [
                ImportedPattern(type='growth_indicator', content=indicator, source=metadata.title, imported_at=imported_at)
                for indicator in insights.growth_indicators
            ]
        except Exception as e:
            logger.error(f'Document integration error for {metadata.title}: {e}')
            raise DocumentImportError(f'Failed to integrate document: {e}')

        memory_store.add_imported_document(document)
        memory_store.add_imported_chunks(chunks)
        memory_store.add_imported_patterns(patterns)

        logger.info(f'Imported {metadata.title}: {len(chunks)} chunks, type {insights.document_type.value}')
        return ImportResult(chunks_processed=len(chunks),
                            summary=summary,
                            insights=insights,
                            metadata=metadata,
                            imported_at=imported_at,
                            chunks=chunks)
