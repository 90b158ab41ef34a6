"""
Session-scoped state handed to the conversation engine.

Everything a single user's conversation needs besides the memory store and
the cache lives here, so several sessions can run side by side without
sharing hidden state.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from .core import EmotionTag, EngagementLevel, PersonaId

CONVERSATION_STYLES = ('casual', 'professional', 'friendly')


@dataclass
class Preferences:
    allow_profanity: bool = False
    conversation_style: str = 'casual'


@dataclass(frozen=True)
class ActiveProgram:
    name: str
    current_day: int
    streak_count: int = 0
    completion_percentage: float = 0.0


@dataclass(frozen=True)
class LessonActivity:
    title: str
    completed_at: datetime


@dataclass(frozen=True)
class Milestone:
    milestone_type: str
    milestone_data: str
    reached_at: Optional[datetime] = None


@dataclass
class ProgramProgress:
    """Growth-program enrollment state supplied by the persistence layer."""
    current_programs: List[ActiveProgram] = field(default_factory=list)
    completed_programs: List[str] = field(default_factory=list)
    current_day_lessons: List[LessonActivity] = field(default_factory=list)
    recent_milestones: List[Milestone] = field(default_factory=list)
    total_days_completed: int = 0
    longest_streak: int = 0


@dataclass
class JournalInsights:
    """Journal summary supplied by the persistence layer.

    ``last_journal_date`` is None until the user writes a first entry; that is
    the "no journal yet" state.
    """
    recent_moods: List[str] = field(default_factory=list)
    mood_scores: List[float] = field(default_factory=list)  # newest first, 1-5 scale
    common_themes: List[str] = field(default_factory=list)
    current_challenges: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)
    journaling_frequency: str = 'new'
    last_journal_date: Optional[datetime] = None

    @property
    def has_journal(self) -> bool:
        return self.last_journal_date is not None


@dataclass
class SessionTracking:
    current_session_id: Optional[str] = None
    journaling_suggested_this_session: bool = False
    last_journal_suggestion: Optional[datetime] = None
    sessions_without_journal_suggestion: int = 0


@dataclass
class SessionContext:
    """Per-user conversation state."""
    user_id: str
    preferences: Preferences = field(default_factory=Preferences)
    program_progress: ProgramProgress = field(default_factory=ProgramProgress)
    journal_insights: JournalInsights = field(default_factory=JournalInsights)
    tracking: SessionTracking = field(default_factory=SessionTracking)
    persona: PersonaId = PersonaId.MENTOR
    current_mood: Optional[EmotionTag] = None
    engagement_level: EngagementLevel = EngagementLevel.NEW
