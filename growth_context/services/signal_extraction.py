"""
Heuristic signal extraction: emotion, energy, topics, goals, challenges,
relationships and insights from raw text.

Every function here is pure and total. Degenerate input yields the neutral
defaults instead of an error, and identical input always yields identical
output.
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.core import (ChallengeRecord, EmotionMention, EmotionTag, EnergyTag, RelationshipMention, SignalBundle,
                           ThemeMention, Topic)

# Declaration order is the tie-break order for detect_emotion
EMOTION_KEYWORDS: Tuple[Tuple[EmotionTag, Tuple[str, ...]], ...] = (
    (EmotionTag.EXCITED, ('excited', 'amazing', 'awesome', 'fantastic', 'thrilled', '!')),
    (EmotionTag.STRESSED, ('stressed', 'overwhelmed', 'anxious', 'worried', 'pressure')),
    (EmotionTag.HAPPY, ('happy', 'good', 'great', 'wonderful', 'grateful')),
    (EmotionTag.SAD, ('sad', 'down', 'depressed', 'low', 'hurt')),
    (EmotionTag.ANGRY, ('angry', 'mad', 'frustrated', 'pissed', 'furious')),
    (EmotionTag.CONFUSED, ('confused', 'lost', 'unclear', "don't know", 'uncertain')),
    (EmotionTag.MOTIVATED, ('motivated', 'determined', 'driven', 'ready to')),
    (EmotionTag.CONTENT, ('peaceful', 'calm', 'relaxed', 'at peace', 'content with')),
    (EmotionTag.REFLECTIVE, ('reflecting', 'wondering', 'thinking about', 'looking back')),
)

TOPIC_KEYWORDS: Tuple[Tuple[Topic, Tuple[str, ...]], ...] = (
    (Topic.WORK, ('work', 'job', 'career', 'boss', 'office', 'meeting', 'promotion', 'promoted', 'salary', 'coworker')),
    (Topic.RELATIONSHIPS, ('girlfriend', 'boyfriend', 'partner', 'family', 'friend', 'spouse', 'relationship')),
    (Topic.HEALTH, ('tired', 'sick', 'workout', 'exercise', 'sleep', 'diet', 'fitness')),
    (Topic.GOALS, ('goal', 'dream', 'want to', 'planning', 'future')),
    (Topic.EMOTIONS, ('feeling', 'feel', 'emotion', 'mood', 'happy', 'sad')),
    (Topic.FINANCES, ('money', 'budget', 'savings', 'debt', 'financial', 'income')),
    (Topic.EDUCATION, ('school', 'university', 'study', 'course', 'degree', 'exam')),
    (Topic.CREATIVITY, ('creative', 'music', 'writing', 'painting', 'design', 'inspiration')),
    (Topic.SPIRITUALITY, ('spiritual', 'meditation', 'prayer', 'faith', 'purpose')),
    (Topic.PERSONAL_GROWTH, ('growth', 'learning', 'improve', 'progress', 'self-development')),
)

FATIGUE_KEYWORDS = ('tired', 'exhausted', 'drained', 'worn out', 'burned out', 'burnt out')

CHALLENGE_KEYWORDS = (
    'struggle', 'struggling', 'difficult', 'difficulty', 'challenge', 'challenging',
    'problem', 'issue', 'trouble', 'hard', 'tough', 'overwhelming', 'stuck',
    "can't", 'unable', 'fail', 'failing', 'obstacle', 'barrier',
)

RELATIONSHIP_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ('romantic', ('partner', 'boyfriend', 'girlfriend', 'spouse', 'husband', 'wife', 'relationship')),
    ('family', ('mom', 'dad', 'mother', 'father', 'sister', 'brother', 'family', 'parents')),
    ('professional', ('boss', 'colleague', 'coworker', 'manager', 'team', 'client')),
    ('social', ('friend', 'friends', 'buddy', 'social circle', 'peer')),
)

_PHRASE_END = r'(?:[.,!?]|$)'

GOAL_PATTERNS = tuple(
    re.compile(p + _PHRASE_END, re.IGNORECASE | re.MULTILINE) for p in (
        r'want to (.+?)',
        r'goals? (?:is|are) to (.+?)',
        r'hoping to (.+?)',
        r'plan(?:ning)? to (.+?)',
        r'dream(?:ing)? of (.+?)',
        r'would love to (.+?)',
    ))

INSIGHT_PATTERNS = tuple(
    re.compile(p + _PHRASE_END, re.IGNORECASE | re.MULTILINE) for p in (
        r"\bI (?:realized|learned|discovered|found out) (.+?)",
        r'(?:realized|learned|discovered) that (.+?)',
        r'(?:insight|realization):? (.+?)',
    ))

NEEDS_BY_EMOTION: Dict[EmotionTag, Tuple[str, ...]] = {
    EmotionTag.EXCITED: ('hype', 'celebration', 'encouragement'),
    EmotionTag.STRESSED: ('support', 'calming', 'guidance'),
    EmotionTag.CONFUSED: ('clarity', 'direction', 'perspective'),
    EmotionTag.SAD: ('comfort', 'understanding', 'support'),
    EmotionTag.ANGRY: ('validation', 'calming', 'perspective'),
    EmotionTag.HAPPY: ('celebration', 'sharing', 'encouragement'),
}
DEFAULT_NEEDS = ('support', 'understanding')

MIN_GOAL_LENGTH = 5
MIN_INSIGHT_LENGTH = 10

_CAPS_RUN = re.compile(r'[A-Z]{2,}')
_SENTENCE_SPLIT = re.compile(r'[.!?]+')


def _normalize(text: Optional[str]) -> str:
    """Lowercase and straighten curly apostrophes so keyword tables match typed text."""
    if not text:
        return ''
    return str(text).replace('’', "'").replace('‘', "'").lower()


def _matches(lowered: str, keywords: Sequence[str]) -> List[str]:
    return [keyword for keyword in keywords if keyword in lowered]


def _dedup(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        cleaned = re.sub(r'\s+', ' ', item).strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            out.append(cleaned)
    return out


def detect_emotion_mentions(text: Optional[str]) -> List[EmotionMention]:
    """Every emotion with at least one keyword hit, in table order."""
    lowered = _normalize(text)
    mentions = []
    for emotion, keywords in EMOTION_KEYWORDS:
        hits = _matches(lowered, keywords)
        if hits:
            mentions.append(EmotionMention(emotion=emotion, intensity=len(hits), keywords=hits))
    return mentions


def detect_emotion(text: Optional[str]) -> EmotionTag:
    """Emotion with the most keyword hits; first declared wins ties, no hits is neutral."""
    top_emotion = EmotionTag.NEUTRAL
    max_score = 0
    for mention in detect_emotion_mentions(text):
        if mention.intensity > max_score:
            max_score = mention.intensity
            top_emotion = mention.emotion
    return top_emotion


def detect_energy(text: Optional[str]) -> EnergyTag:
    raw = str(text) if text else ''
    exclamations = raw.count('!')
    caps_runs = len(_CAPS_RUN.findall(raw))

    if exclamations > 1 or caps_runs > 1:
        return EnergyTag.HIGH
    if _matches(_normalize(raw), FATIGUE_KEYWORDS):
        return EnergyTag.LOW
    return EnergyTag.MEDIUM


def detect_themes(text: Optional[str]) -> List[ThemeMention]:
    """Every topic with at least one keyword hit, with hit counts."""
    lowered = _normalize(text)
    themes = []
    for topic, keywords in TOPIC_KEYWORDS:
        hits = _matches(lowered, keywords)
        if hits:
            themes.append(ThemeMention(theme=topic, relevance=len(hits), keywords=hits))
    return themes


def extract_topics(text: Optional[str]) -> List[Topic]:
    """Matching topics in table order; never empty."""
    topics = [theme.theme for theme in detect_themes(text)]
    return topics or [Topic.GENERAL]


def _extract_phrases(text: Optional[str], patterns, min_length: int) -> List[str]:
    if not text:
        return []
    raw = str(text)
    found = []
    for pattern in patterns:
        for match in pattern.finditer(raw):
            phrase = match.group(1).strip()
            if len(phrase) > min_length:
                found.append(phrase)
    return _dedup(found)


def extract_goals(text: Optional[str]) -> List[str]:
    return _extract_phrases(text, GOAL_PATTERNS, MIN_GOAL_LENGTH)


def extract_insights(text: Optional[str]) -> List[str]:
    return _extract_phrases(text, INSIGHT_PATTERNS, MIN_INSIGHT_LENGTH)


def extract_challenges(text: Optional[str]) -> List[ChallengeRecord]:
    if not text:
        return []
    challenges = []
    for sentence in _SENTENCE_SPLIT.split(str(text)):
        hits = _matches(_normalize(sentence), CHALLENGE_KEYWORDS)
        if hits and sentence.strip():
            challenges.append(ChallengeRecord(challenge=sentence.strip(), keywords=hits, severity=len(hits)))
    return challenges


def extract_relationships(text: Optional[str]) -> List[RelationshipMention]:
    lowered = _normalize(text)
    relationships = []
    for category, keywords in RELATIONSHIP_KEYWORDS:
        for keyword in _matches(lowered, keywords):
            relationships.append(RelationshipMention(category=category, keyword=keyword, mentions=lowered.count(keyword)))
    return relationships


def determine_needs(emotion: EmotionTag) -> List[str]:
    """Conversational needs implied by an emotional state."""
    return list(NEEDS_BY_EMOTION.get(emotion, DEFAULT_NEEDS))


def analyze(text: Optional[str]) -> SignalBundle:
    """Run every extractor over ``text``."""
    return SignalBundle(emotion=detect_emotion(text),
                        energy=detect_energy(text),
                        topics=extract_topics(text),
                        goals=extract_goals(text),
                        challenges=extract_challenges(text),
                        relationships=extract_relationships(text),
                        insights=extract_insights(text))
