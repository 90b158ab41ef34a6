"""
Conversation engine: composes signal extraction, persona selection, memory,
the response cache and the model client into one reply per user turn.
"""

import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from ..models.core import (ConversationTurn, EmotionalPatternEntry, EmotionTag, EnergyTag, EngagementLevel, PersonaId,
                           SignalBundle, Topic)
from ..models.session import CONVERSATION_STYLES, SessionContext
from ..utils.config import config
from ..utils.logging_config import get_logger
from ..utils.prompt_utils import compact_prompt, optimal_max_tokens
from ..utils.response_cache import ResponseCache, build_key
from ..utils.timestamp_utils import now
from .conversation_memory import ConversationMemoryStore
from .growth_context import (journal_prompt_block, journal_recommendation, mark_journaling_suggested, program_prompt,
                             should_mention_programs)
from .persona_selection import UserState, render_persona_prompt, select_persona
from .signal_extraction import analyze, determine_needs

logger = get_logger(__name__)

GENERIC_MAX_TOKENS = 150
CLOSING_INSTRUCTION = ('Use all context to make response personally relevant and naturally reference their growth '
                       'journey when appropriate!')

FALLBACK_RESPONSES = (
    "Hey, what's going on?",
    'Tell me more about that!',
    "That sounds interesting, what's up?",
    "I'm listening.",
)

FALLBACK_STRATEGY_APPROACH = 'supportive'

# Engagement thresholds on recorded turns
DEVELOPING_AFTER_TURNS = 3
DEEP_AFTER_TURNS = 10


class ModelResponseError(Exception):
    """Custom exception for unusable model replies."""
    pass


class ModelClient(Protocol):
    """External language model collaborator."""

    async def complete(self, prompt: str, max_tokens: int) -> str:
        ...


@dataclass
class Strategy:
    persona: PersonaId
    approach: str = 'conversational'

    def to_dict(self) -> Dict[str, Any]:
        return {'persona': self.persona.value, 'approach': self.approach}


@dataclass
class ConversationResult:
    message: str
    analysis: SignalBundle
    strategy: Strategy
    insights: Dict[str, Any] = field(default_factory=dict)
    from_cache: bool = False
    fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'analysis': self.analysis.to_dict(),
            'strategy': self.strategy.to_dict(),
            'insights': dict(self.insights),
        }


def engagement_for(turn_count: int) -> EngagementLevel:
    if turn_count < DEVELOPING_AFTER_TURNS:
        return EngagementLevel.NEW
    if turn_count < DEEP_AFTER_TURNS:
        return EngagementLevel.DEVELOPING
    return EngagementLevel.DEEP


class ConversationEngine:
    """Per-session orchestrator; one instance per user conversation."""

    def __init__(self,
                 session: SessionContext,
                 model_client: ModelClient,
                 memory_store: Optional[ConversationMemoryStore] = None,
                 cache: Optional[ResponseCache] = None,
                 clock: Callable[[], datetime] = now):
        """
        Initialize the conversation engine.

        Args:
            session: Session state for this user
            model_client: Async model collaborator
            memory_store: Conversation memory (built from config if None)
            cache: Response cache (built from config if None)
            clock: Wall clock used for timestamps
        """
        self.session = session
        self.model_client = model_client
        self.memory = memory_store or ConversationMemoryStore.from_config(config.memory)
        self.cache = cache or ResponseCache.from_config(config.cache)
        self._clock = clock

        logger.info(f'Initialized ConversationEngine for user {session.user_id}')

    async def respond(self, user_input: str, session_type: str = 'check_in') -> ConversationResult:
        """
        Produce a reply for one user turn.

        Model failures never escape: the turn is not recorded and a fallback
        message is returned instead.

        Args:
            user_input: Raw user message
            session_type: Kind of session, passed to persona selection

        Returns:
            ConversationResult with the reply, analysis, strategy and insights
        """
        try:
            signals = analyze(user_input)
            timestamp = self._clock()

            self.memory.record_emotional_sample(
                EmotionalPatternEntry(state=signals.emotion, timestamp=timestamp, context=list(signals.topics)))
            self.session.current_mood = signals.emotion

            persona = select_persona(signals.emotion, signals.energy, {'session_type': session_type})
            self.session.persona = persona
            strategy = Strategy(persona=persona)

            message, from_cache, suggested_journaling = await self._generate(persona, user_input, signals, timestamp)
            if suggested_journaling:
                mark_journaling_suggested(self.session.tracking, timestamp)

            self.memory.record_turn(
                ConversationTurn(timestamp=timestamp,
                                 user_input=user_input,
                                 ai_response=message,
                                 emotional_state=signals.emotion,
                                 topics=list(signals.topics),
                                 persona=persona))
            self.session.engagement_level = engagement_for(len(self.memory.turns))

            return ConversationResult(message=message,
                                      analysis=signals,
                                      strategy=strategy,
                                      insights={
                                          'topics': [t.value for t in signals.topics],
                                          'needs': determine_needs(signals.emotion),
                                          'engagement_level': self.session.engagement_level.value,
                                      },
                                      from_cache=from_cache)

        except Exception as e:
            logger.error(f'Conversation error for user {self.session.user_id}: {e}')
            return self._fallback_result()

    async def _generate(self, persona: PersonaId, user_input: str, signals: SignalBundle,
                        timestamp: datetime) -> Tuple[str, bool, bool]:
        """Returns the reply, whether it came from the cache and whether its prompt suggested journaling."""
        user_state = UserState(emotion=signals.emotion, energy=signals.energy)
        memory_context = self.memory.format_context_for_model(user_input, signals.emotion)
        persona_prompt = render_persona_prompt(persona, user_input, user_state,
                                               self.session.preferences.allow_profanity)

        if persona_prompt is None:
            reply = await self._complete(f'Respond naturally to: "{user_input}"', GENERIC_MAX_TOKENS)
            return reply, False, False

        cache_key = build_key(persona.value, user_input, signals.emotion.value)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f'Response cache hit for persona {persona.value}')
            return cached, True, False

        recommend = journal_recommendation(self.session.tracking, user_input)
        prompt = self._build_prompt(persona_prompt, memory_context, recommend, timestamp)
        reply = await self._complete(prompt, optimal_max_tokens(len(prompt)))
        self.cache.set(cache_key, reply)
        return reply, False, recommend

    def _build_prompt(self, persona_prompt: str, memory_context: str, recommend_journaling: bool,
                      timestamp: datetime) -> str:
        sections: List[str] = [compact_prompt(persona_prompt), compact_prompt(memory_context)]

        progress = self.session.program_progress
        if should_mention_programs(progress, timestamp):
            block = program_prompt(progress)
            if block:
                sections.append(block)

        journal_block = journal_prompt_block(self.session.journal_insights, recommend_journaling, timestamp)
        if journal_block:
            sections.append(journal_block)

        sections.append(CLOSING_INSTRUCTION)
        return '\n\n'.join(sections)

    async def _complete(self, prompt: str, max_tokens: int) -> str:
        reply = await self.model_client.complete(prompt, max_tokens)
        if not isinstance(reply, str):
            raise ModelResponseError(f'Model returned {type(reply).__name__} instead of text')
        reply = reply.strip()
        if not reply:
            raise ModelResponseError('Model returned an empty reply')
        return reply

    def _fallback_result(self) -> ConversationResult:
        return ConversationResult(message=random.choice(FALLBACK_RESPONSES),
                                  analysis=SignalBundle(emotion=EmotionTag.NEUTRAL,
                                                        energy=EnergyTag.MEDIUM,
                                                        topics=[Topic.GENERAL]),
                                  strategy=Strategy(persona=PersonaId.MENTOR, approach=FALLBACK_STRATEGY_APPROACH),
                                  insights={},
                                  fallback=True)

    # Session controls

    def change_persona(self, persona: str) -> str:
        try:
            self.session.persona = PersonaId(persona.strip().lower())
        except ValueError:
            return f"Try: {', '.join(p.value for p in PersonaId)}"
        return f"Switched to {self.session.persona.value} mode! What's up?"

    def toggle_profanity(self, allow: Optional[bool] = None) -> str:
        preferences = self.session.preferences
        preferences.allow_profanity = (not preferences.allow_profanity) if allow is None else allow
        if preferences.allow_profanity:
            return 'Profanity is now ON. I can swear for emphasis!'
        return 'Profanity is now OFF. Keeping it clean!'

    def set_style(self, style: str) -> str:
        if style not in CONVERSATION_STYLES:
            return f"Try: {', '.join(CONVERSATION_STYLES)}"
        self.session.preferences.conversation_style = style
        return f'Conversation style set to {style}!'

    def start_session(self) -> str:
        """Open a new session and return its id."""
        tracking = self.session.tracking
        if tracking.current_session_id is not None and not tracking.journaling_suggested_this_session:
            tracking.sessions_without_journal_suggestion += 1
        tracking.current_session_id = uuid.uuid4().hex
        tracking.journaling_suggested_this_session = False
        logger.debug(f'Started session {tracking.current_session_id} for user {self.session.user_id}')
        return tracking.current_session_id

    def user_insights(self) -> Dict[str, Any]:
        return {
            'user_id': self.session.user_id,
            'current_mood': self.session.current_mood.value if self.session.current_mood else None,
            'engagement_level': self.session.engagement_level.value,
            'persona': self.session.persona.value,
            'conversation_count': len(self.memory.turns),
            'patterns': {
                'emotional': {state.value: count for state, count in self.memory.emotion_counts().items()},
            },
            'imported_documents': [doc.to_dict() for doc in self.memory.imported_documents],
        }
