"""
Conversation memory: bounded history of turns, emotional samples and
imported document chunks, with relevance-ranked retrieval.
"""

import re
from collections import Counter
from typing import Any, Dict, List, Optional, Set, Tuple

from ..models.core import (ConversationTurn, DocumentChunk, EmotionalPatternEntry, EmotionalTrend, EmotionTag,
                           ImportedDocument, ImportedPattern, PatternSummary, TimeBucket, Topic)
from ..utils.bounded_window import BoundedWindow
from ..utils.config import MemoryConfig
from ..utils.logging_config import get_logger
from .signal_extraction import extract_topics

logger = get_logger(__name__)

TOP_K = 3
PATTERN_WINDOW = 10
TREND_WINDOW = 7
MIN_TREND_SAMPLES = 3
EXCERPT_LENGTH = 200
RECENT_DOCUMENT_COUNT = 3

# Relevance weights for imported chunks
SHARED_WORD_WEIGHT = 2
EMOTION_MATCH_WEIGHT = 5
THEME_MATCH_WEIGHT = 3

IMPROVING_STATES = frozenset({EmotionTag.EXCITED, EmotionTag.HAPPY, EmotionTag.MOTIVATED, EmotionTag.CONTENT})
CONCERNING_STATES = frozenset({EmotionTag.STRESSED, EmotionTag.ANXIOUS, EmotionTag.OVERWHELMED, EmotionTag.SAD})

FIRST_CONVERSATION_NOTICE = "This is the user's first conversation. Be welcoming and establish rapport."

_WORD = re.compile(r"[\w']+")


def qualifying_words(text: str) -> Set[str]:
    """Lowercased words longer than 3 characters."""
    return {word for word in _WORD.findall((text or '').lower()) if len(word) > 3}


def time_bucket(hour: int) -> TimeBucket:
    if 6 <= hour < 12:
        return TimeBucket.MORNING
    if 12 <= hour < 17:
        return TimeBucket.AFTERNOON
    if 17 <= hour < 22:
        return TimeBucket.EVENING
    return TimeBucket.NIGHT


class ConversationMemoryStore:
    """Per-session memory of turns, emotional samples and imported material."""

    def __init__(self,
                 max_turns: int = 50,
                 max_emotional_samples: int = 50,
                 max_imported_chunks: int = 200,
                 max_imported_patterns: int = 100):
        self.turns: BoundedWindow[ConversationTurn] = BoundedWindow(max_turns)
        self.emotional_samples: BoundedWindow[EmotionalPatternEntry] = BoundedWindow(max_emotional_samples)
        self.imported_chunks: BoundedWindow[DocumentChunk] = BoundedWindow(max_imported_chunks)
        self.imported_patterns: BoundedWindow[ImportedPattern] = BoundedWindow(max_imported_patterns)
        self.imported_documents: List[ImportedDocument] = []

    @classmethod
    def from_config(cls, memory_config: MemoryConfig) -> 'ConversationMemoryStore':
        return cls(max_turns=memory_config.max_turns,
                   max_emotional_samples=memory_config.max_emotional_samples,
                   max_imported_chunks=memory_config.max_imported_chunks,
                   max_imported_patterns=memory_config.max_imported_patterns)

    # Recording

    def record_turn(self, turn: ConversationTurn) -> None:
        self.turns.append(turn)
        logger.debug(f'Recorded turn ({len(self.turns)}/{self.turns.cap})')

    def record_emotional_sample(self, entry: EmotionalPatternEntry) -> None:
        self.emotional_samples.append(entry)

    def add_imported_document(self, document: ImportedDocument) -> None:
        self.imported_documents.append(document)

    def add_imported_chunks(self, chunks: List[DocumentChunk]) -> None:
        self.imported_chunks.extend(chunks)
        logger.debug(f'Added {len(chunks)} imported chunks ({len(self.imported_chunks)}/{self.imported_chunks.cap})')

    def add_imported_patterns(self, patterns: List[ImportedPattern]) -> None:
        self.imported_patterns.extend(patterns)

    # Retrieval

    def find_similar_turns(self, user_input: str) -> List[ConversationTurn]:
        """Top turns by shared qualifying words with ``user_input``; zero overlap is excluded."""
        input_words = qualifying_words(user_input)
        if not input_words:
            return []

        scored: List[Tuple[int, ConversationTurn]] = []
        for turn in self.turns:
            shared = len(input_words & qualifying_words(turn.user_input))
            if shared > 0:
                scored.append((shared, turn))

        # sort is stable, so equal scores keep insertion order
        scored.sort(key=lambda item: item[0], reverse=True)
        return [turn for _, turn in scored[:TOP_K]]

    def recent_pattern_summary(self) -> PatternSummary:
        emotions: Counter = Counter()
        topics: Counter = Counter()
        time_of_day: Counter = Counter()

        for turn in self.turns.recent(PATTERN_WINDOW):
            emotions[turn.emotional_state] += 1
            for topic in turn.topics:
                topics[topic] += 1
            time_of_day[time_bucket(turn.timestamp.hour)] += 1

        return PatternSummary(emotions=dict(emotions), topics=dict(topics), time_of_day=dict(time_of_day))

    def emotional_trend(self) -> Optional[EmotionalTrend]:
        """Bucket counts over the latest samples, or None when there is not enough data yet."""
        if len(self.emotional_samples) < MIN_TREND_SAMPLES:
            return None

        improving = stable = concerning = 0
        for sample in self.emotional_samples.recent(TREND_WINDOW):
            if sample.state in IMPROVING_STATES:
                improving += 1
            elif sample.state in CONCERNING_STATES:
                concerning += 1
            else:
                stable += 1
        return EmotionalTrend(improving=improving, stable=stable, concerning=concerning)

    def emotion_counts(self) -> Dict[EmotionTag, int]:
        """Counts of every retained emotional sample."""
        return dict(Counter(sample.state for sample in self.emotional_samples))

    def score_imported_chunk(self, chunk: DocumentChunk, input_words: Set[str], current_emotion: EmotionTag,
                             input_topics: List[Topic]) -> int:
        score = SHARED_WORD_WEIGHT * len(input_words & qualifying_words(chunk.content))
        if any(mention.emotion == current_emotion for mention in chunk.analysis.emotions):
            score += EMOTION_MATCH_WEIGHT
        if any(theme.theme in input_topics for theme in chunk.analysis.themes):
            score += THEME_MATCH_WEIGHT
        return score

    def relevant_imported_context(self, user_input: str, current_emotion: EmotionTag) -> List[DocumentChunk]:
        """Top imported chunks by relevance to the input and current emotion."""
        if not self.imported_chunks:
            return []

        input_words = qualifying_words(user_input)
        input_topics = extract_topics(user_input)

        scored: List[Tuple[int, DocumentChunk]] = []
        for chunk in self.imported_chunks:
            score = self.score_imported_chunk(chunk, input_words, current_emotion, input_topics)
            if score > 0:
                scored.append((score, chunk))

        scored.sort(key=lambda item: item[0], reverse=True)
        return [chunk for _, chunk in scored[:TOP_K]]

    def format_context_for_model(self, user_input: str, current_emotion: EmotionTag) -> str:
        """Natural-language summary of everything the model should know about this user."""
        imported = self.relevant_imported_context(user_input, current_emotion)
        conversation_count = len(self.turns)

        if conversation_count == 0 and not imported:
            return FIRST_CONVERSATION_NOTICE

        lines = [f'CONVERSATION CONTEXT ({conversation_count} previous chats):']

        patterns = self.recent_pattern_summary()
        if patterns.emotions:
            top_emotion, count = max(patterns.emotions.items(), key=lambda item: item[1])
            lines.append(f'Recent emotional pattern: Often feeling {top_emotion.value} ({count} times recently)')

        similar = self.find_similar_turns(user_input)
        if similar:
            most_similar = similar[0]
            lines.append(f'Similar past conversation: User said "{most_similar.user_input}" '
                         f'and felt {most_similar.emotional_state.value}')

        trend = self.emotional_trend()
        if trend is not None:
            if trend.direction == 'improving':
                lines.append('Emotional trend: Generally improving mood recently')
            elif trend.direction == 'concerning':
                lines.append('Emotional trend: Some challenging emotions recently - be extra supportive')

        if imported:
            lines.append('')
            lines.append('IMPORTED DOCUMENT INSIGHTS:')
            for chunk in imported:
                excerpt = chunk.content[:EXCERPT_LENGTH]
                if len(chunk.content) > EXCERPT_LENGTH:
                    excerpt += '...'
                lines.append(f'From "{chunk.source}": {excerpt}')
                if chunk.analysis.emotions:
                    lines.append(f"  Emotions found: {', '.join(m.emotion.value for m in chunk.analysis.emotions)}")
                if chunk.analysis.themes:
                    lines.append(f"  Key themes: {', '.join(t.theme.value for t in chunk.analysis.themes)}")

        if self.imported_documents:
            titles = ', '.join(doc.title for doc in self.imported_documents[-RECENT_DOCUMENT_COUNT:])
            lines.append('')
            lines.append(f'Recently imported documents: {titles}')

        lines.append('')
        lines.append('Use this context to make your response feel personally relevant and show you remember them.')
        return '\n'.join(lines)

    # Persistence

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy of the store for an external persistence layer."""
        return {
            'turns': [turn.to_dict() for turn in self.turns],
            'emotional_samples': [sample.to_dict() for sample in self.emotional_samples],
            'imported_chunks': [chunk.to_dict() for chunk in self.imported_chunks],
            'imported_patterns': [pattern.to_dict() for pattern in self.imported_patterns],
            'imported_documents': [doc.to_dict() for doc in self.imported_documents],
        }

    @classmethod
    def restore(cls, snapshot: Dict[str, Any], memory_config: Optional[MemoryConfig] = None) -> 'ConversationMemoryStore':
        store = cls.from_config(memory_config) if memory_config else cls()
        store.turns.extend(ConversationTurn.from_dict(t) for t in snapshot.get('turns', []))
        store.emotional_samples.extend(EmotionalPatternEntry.from_dict(s) for s in snapshot.get('emotional_samples', []))
        store.imported_chunks.extend(DocumentChunk.from_dict(c) for c in snapshot.get('imported_chunks', []))
        store.imported_patterns.extend(ImportedPattern.from_dict(p) for p in snapshot.get('imported_patterns', []))
        store.imported_documents.extend(ImportedDocument.from_dict(d) for d in snapshot.get('imported_documents', []))
        logger.info(f'Restored memory with {len(store.turns)} turns and {len(store.imported_chunks)} imported chunks')
        return store
