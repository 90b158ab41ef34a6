"""
Core data models for the personalization context engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.timestamp_utils import from_iso, to_iso


class EmotionTag(str, Enum):
    """Closed set of emotional states the engine recognizes."""
    EXCITED = 'excited'
    MOTIVATED = 'motivated'
    PUMPED = 'pumped'
    HAPPY = 'happy'
    CONTENT = 'content'
    REFLECTIVE = 'reflective'
    STRESSED = 'stressed'
    OVERWHELMED = 'overwhelmed'
    ANXIOUS = 'anxious'
    SAD = 'sad'
    CONFUSED = 'confused'
    LOST = 'lost'
    ANGRY = 'angry'
    FRUSTRATED = 'frustrated'
    NEUTRAL = 'neutral'


class EnergyTag(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class Topic(str, Enum):
    """Conversation topics; also used as document chunk themes."""
    WORK = 'work'
    RELATIONSHIPS = 'relationships'
    HEALTH = 'health'
    GOALS = 'goals'
    EMOTIONS = 'emotions'
    FINANCES = 'finances'
    EDUCATION = 'education'
    CREATIVITY = 'creativity'
    SPIRITUALITY = 'spirituality'
    PERSONAL_GROWTH = 'personal_growth'
    GENERAL = 'general'


class PersonaId(str, Enum):
    COACH = 'coach'
    FRIEND = 'friend'
    MENTOR = 'mentor'
    CHALLENGER = 'challenger'
    THERAPIST = 'therapist'
    SAGE = 'sage'


class TimeBucket(str, Enum):
    MORNING = 'morning'
    AFTERNOON = 'afternoon'
    EVENING = 'evening'
    NIGHT = 'night'


class DocumentClass(str, Enum):
    THERAPY_NOTES = 'therapy_notes'
    JOURNAL = 'journal'
    BOOK_HIGHLIGHTS = 'book_highlights'
    WORK_NOTES = 'work_notes'
    PERSONAL_DEVELOPMENT = 'personal_development'
    GENERAL_DOCUMENT = 'general_document'


class Tone(str, Enum):
    POSITIVE = 'positive'
    NEGATIVE = 'negative'
    NEUTRAL = 'neutral'


class EngagementLevel(str, Enum):
    NEW = 'new'
    DEVELOPING = 'developing'
    DEEP = 'deep'


@dataclass(frozen=True)
class ChallengeRecord:
    """A sentence describing a struggle; severity is the number of struggle keywords it hits."""
    challenge: str
    keywords: List[str]
    severity: int

    def to_dict(self) -> Dict[str, Any]:
        return {'challenge': self.challenge, 'keywords': list(self.keywords), 'severity': self.severity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChallengeRecord':
        return cls(challenge=data['challenge'], keywords=list(data.get('keywords', [])), severity=int(data.get('severity', 0)))


@dataclass(frozen=True)
class RelationshipMention:
    category: str  # romantic, family, professional, social
    keyword: str
    mentions: int

    def to_dict(self) -> Dict[str, Any]:
        return {'category': self.category, 'keyword': self.keyword, 'mentions': self.mentions}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RelationshipMention':
        return cls(category=data['category'], keyword=data['keyword'], mentions=int(data.get('mentions', 0)))


@dataclass(frozen=True)
class EmotionMention:
    emotion: EmotionTag
    intensity: int
    keywords: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {'emotion': self.emotion.value, 'intensity': self.intensity, 'keywords': list(self.keywords)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EmotionMention':
        return cls(emotion=EmotionTag(data['emotion']), intensity=int(data.get('intensity', 0)), keywords=list(data.get('keywords', [])))


@dataclass(frozen=True)
class ThemeMention:
    theme: Topic
    relevance: int
    keywords: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {'theme': self.theme.value, 'relevance': self.relevance, 'keywords': list(self.keywords)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ThemeMention':
        return cls(theme=Topic(data['theme']), relevance=int(data.get('relevance', 0)), keywords=list(data.get('keywords', [])))


@dataclass(frozen=True)
class SignalBundle:
    """Structured signals extracted from one piece of text.

    Produced fresh per input and never persisted directly; the memory store
    folds the emotion and topics into turns and emotional samples.
    """
    emotion: EmotionTag
    energy: EnergyTag
    topics: List[Topic]
    goals: List[str] = field(default_factory=list)
    challenges: List[ChallengeRecord] = field(default_factory=list)
    relationships: List[RelationshipMention] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'emotion': self.emotion.value,
            'energy': self.energy.value,
            'topics': [t.value for t in self.topics],
            'goals': list(self.goals),
            'challenges': [c.to_dict() for c in self.challenges],
            'relationships': [r.to_dict() for r in self.relationships],
            'insights': list(self.insights),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignalBundle':
        return cls(emotion=EmotionTag(data.get('emotion', 'neutral')),
                   energy=EnergyTag(data.get('energy', 'medium')),
                   topics=[Topic(t) for t in data.get('topics', ['general'])],
                   goals=list(data.get('goals', [])),
                   challenges=[ChallengeRecord.from_dict(c) for c in data.get('challenges', [])],
                   relationships=[RelationshipMention.from_dict(r) for r in data.get('relationships', [])],
                   insights=list(data.get('insights', [])))


@dataclass(frozen=True)
class EmotionalPatternEntry:
    state: EmotionTag
    timestamp: datetime
    context: List[Topic]

    def to_dict(self) -> Dict[str, Any]:
        return {'state': self.state.value, 'timestamp': to_iso(self.timestamp), 'context': [t.value for t in self.context]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EmotionalPatternEntry':
        return cls(state=EmotionTag(data['state']),
                   timestamp=from_iso(data['timestamp']),
                   context=[Topic(t) for t in data.get('context', [])])


@dataclass(frozen=True)
class ConversationTurn:
    """One user message and the reply it received."""
    timestamp: datetime
    user_input: str
    ai_response: str
    emotional_state: EmotionTag
    topics: List[Topic]
    persona: Optional[PersonaId] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': to_iso(self.timestamp),
            'user_input': self.user_input,
            'ai_response': self.ai_response,
            'emotional_state': self.emotional_state.value,
            'topics': [t.value for t in self.topics],
            'persona': self.persona.value if self.persona else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversationTurn':
        persona = data.get('persona')
        return cls(timestamp=from_iso(data['timestamp']),
                   user_input=data['user_input'],
                   ai_response=data.get('ai_response', ''),
                   emotional_state=EmotionTag(data.get('emotional_state', 'neutral')),
                   topics=[Topic(t) for t in data.get('topics', [])],
                   persona=PersonaId(persona) if persona else None)


@dataclass(frozen=True)
class ChunkAnalysis:
    """Signals of one document chunk plus its per-emotion and per-theme keyword hits."""
    signals: SignalBundle
    emotions: List[EmotionMention]
    themes: List[ThemeMention]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'signals': self.signals.to_dict(),
            'emotions': [e.to_dict() for e in self.emotions],
            'themes': [t.to_dict() for t in self.themes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChunkAnalysis':
        return cls(signals=SignalBundle.from_dict(data.get('signals', {})),
                   emotions=[EmotionMention.from_dict(e) for e in data.get('emotions', [])],
                   themes=[ThemeMention.from_dict(t) for t in data.get('themes', [])])


@dataclass(frozen=True)
class DocumentChunk:
    content: str
    source: str  # title of the imported document
    analysis: ChunkAnalysis
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'content': self.content,
            'source': self.source,
            'analysis': self.analysis.to_dict(),
            'timestamp': to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DocumentChunk':
        return cls(content=data['content'],
                   source=data.get('source', ''),
                   analysis=ChunkAnalysis.from_dict(data.get('analysis', {})),
                   timestamp=from_iso(data['timestamp']))


@dataclass(frozen=True)
class ImportedDocument:
    title: str
    type: str
    imported_at: datetime
    word_count: int
    size_bytes: int
    document_type: DocumentClass
    overall_tone: Tone
    summary: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'type': self.type,
            'imported_at': to_iso(self.imported_at),
            'word_count': self.word_count,
            'size_bytes': self.size_bytes,
            'document_type': self.document_type.value,
            'overall_tone': self.overall_tone.value,
            'summary': self.summary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImportedDocument':
        return cls(title=data['title'],
                   type=data.get('type', 'text'),
                   imported_at=from_iso(data['imported_at']),
                   word_count=int(data.get('word_count', 0)),
                   size_bytes=int(data.get('size_bytes', 0)),
                   document_type=DocumentClass(data.get('document_type', 'general_document')),
                   overall_tone=Tone(data.get('overall_tone', 'neutral')),
                   summary=data.get('summary', ''))


@dataclass(frozen=True)
class ImportedPattern:
    """A growth indicator found in an imported document."""
    type: str
    content: str
    source: str
    imported_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'content': self.content, 'source': self.source, 'imported_at': to_iso(self.imported_at)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ImportedPattern':
        return cls(type=data.get('type', 'growth_indicator'),
                   content=data['content'],
                   source=data.get('source', ''),
                   imported_at=from_iso(data['imported_at']))


@dataclass(frozen=True)
class EmotionalTrend:
    """Bucket counts over the most recent emotional samples."""
    improving: int
    stable: int
    concerning: int

    @property
    def direction(self) -> str:
        if self.improving > self.concerning:
            return 'improving'
        if self.concerning > self.improving:
            return 'concerning'
        return 'stable'


@dataclass(frozen=True)
class PatternSummary:
    emotions: Dict[EmotionTag, int]
    topics: Dict[Topic, int]
    time_of_day: Dict[TimeBucket, int]
