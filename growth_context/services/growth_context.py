"""
Program and journal context blocks appended to the model prompt.
"""

from datetime import datetime, timedelta
from typing import Optional

from ..models.session import JournalInsights, ProgramProgress, SessionTracking
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

RECENT_LESSON_WINDOW = timedelta(hours=24)
SESSIONS_BETWEEN_JOURNAL_SUGGESTIONS = 3
STALE_JOURNAL_DAYS = 7
MOOD_SAMPLE_COUNT = 3
LOW_MOOD_THRESHOLD = 3
HIGH_MOOD_THRESHOLD = 4

REFLECTION_TRIGGERS = ('journal', 'write', 'reflect', 'think through', 'process this', 'confused about',
                       'overwhelmed by', 'need to figure out')

NO_JOURNAL_CONTEXT = "User hasn't started journaling yet."


def should_mention_programs(progress: ProgramProgress, now: datetime) -> bool:
    """True for users with an active program and either a lesson in the last 24 hours or any recent milestone."""
    if not progress.current_programs:
        return False
    recent_lesson = any(now - lesson.completed_at <= RECENT_LESSON_WINDOW for lesson in progress.current_day_lessons)
    return recent_lesson or bool(progress.recent_milestones)


def program_prompt(progress: ProgramProgress) -> Optional[str]:
    if not progress.current_programs:
        return None

    lines = ['PROGRAM CONTEXT - Reference naturally when relevant:', 'Active Programs:']
    for program in progress.current_programs:
        line = f'- {program.name}: Day {program.current_day}, {program.completion_percentage:g}% complete'
        if program.streak_count > 0:
            line += f', {program.streak_count} day streak'
        lines.append(line)

    if progress.current_day_lessons:
        lines.append('')
        lines.append('Recent Lesson Activity:')
        lines.extend(f'- Completed: {lesson.title}' for lesson in progress.current_day_lessons)

    if progress.recent_milestones:
        lines.append('')
        lines.append('Recent Milestones:')
        lines.extend(f'- {m.milestone_type}: {m.milestone_data}' for m in progress.recent_milestones)

    if progress.total_days_completed > 0:
        overall = f'Overall Progress: {progress.total_days_completed} total days completed'
        if progress.longest_streak > 0:
            overall += f', longest streak: {progress.longest_streak} days'
        lines.append('')
        lines.append(overall)

    lines.append('')
    lines.append('Naturally celebrate progress, encourage consistency, and connect program learnings '
                 'to their current concerns when appropriate.')
    return '\n'.join(lines)


def journal_context(insights: JournalInsights, now: datetime) -> str:
    """One-paragraph summary of the user's journal, or a note that there is none yet."""
    if not insights.has_journal:
        return NO_JOURNAL_CONTEXT

    parts = ['Journal context:']
    if insights.recent_moods:
        parts.append(f"Recent emotions: {', '.join(insights.recent_moods[:MOOD_SAMPLE_COUNT])}.")
    if insights.current_challenges:
        parts.append(f"Current challenges: {', '.join(insights.current_challenges)}.")
    if insights.strengths:
        parts.append(f"Strengths: {', '.join(insights.strengths)}.")
    if insights.common_themes:
        parts.append(f"Common themes: {', '.join(insights.common_themes)}.")
    parts.append(f'Journaling frequency: {insights.journaling_frequency}.')

    days = (now - insights.last_journal_date).days
    if days <= 0:
        parts.append('Last journaled today.')
    elif days == 1:
        parts.append('Last journaled yesterday.')
    elif days > STALE_JOURNAL_DAYS:
        parts.append(f"Haven't journaled in {days} days - might want to encourage journaling.")
    else:
        parts.append(f'Last journaled {days} days ago.')
    return ' '.join(parts)


def should_suggest_journaling(tracking: SessionTracking) -> bool:
    """At most once per session, and only after a few sessions without a suggestion."""
    if tracking.journaling_suggested_this_session:
        return False
    return tracking.sessions_without_journal_suggestion >= SESSIONS_BETWEEN_JOURNAL_SUGGESTIONS


def mark_journaling_suggested(tracking: SessionTracking, now: datetime) -> None:
    tracking.journaling_suggested_this_session = True
    tracking.last_journal_suggestion = now
    tracking.sessions_without_journal_suggestion = 0


def journal_recommendation(tracking: SessionTracking, user_input: str) -> bool:
    """
    Decide whether to nudge the user towards journaling this turn.

    A nudge needs both an open suggestion slot and an explicit reflection
    trigger in the input. Tracking is not modified; the slot is consumed by
    mark_journaling_suggested once a reply carrying the nudge is delivered.

    Returns:
        True when the prompt should suggest journaling
    """
    if not should_suggest_journaling(tracking):
        return False

    lowered = (user_input or '').lower()
    if not any(trigger in lowered for trigger in REFLECTION_TRIGGERS):
        return False

    logger.debug('Journaling suggestion triggered by reflection cue')
    return True


def mood_note(insights: JournalInsights) -> Optional[str]:
    scores = insights.mood_scores[:MOOD_SAMPLE_COUNT]
    if len(scores) < 2:
        return None
    average = sum(scores) / len(scores)
    if average < LOW_MOOD_THRESHOLD:
        return 'Note: Recent journal entries show lower mood scores. Be extra supportive and empathetic.'
    if average > HIGH_MOOD_THRESHOLD:
        return 'Note: Recent journal entries show positive mood. You can celebrate and build on this positivity.'
    return None


def journal_prompt_block(insights: JournalInsights, recommend: bool, now: datetime) -> Optional[str]:
    """
    Journal section of the model prompt.

    Args:
        insights: Journal summary for the user
        recommend: Whether this turn suggests journaling
        now: Current time

    Returns:
        Prompt block, or None when there is no journal and no suggestion
    """
    if not insights.has_journal:
        if not recommend:
            return None
        return (f'Note: {NO_JOURNAL_CONTEXT} Consider mentioning the benefits of journaling '
                'if appropriate to the conversation.')

    lines = [journal_context(insights, now)]
    if recommend:
        lines.append('Consider gently suggesting journaling as this seems like a good opportunity for reflection.')

    note = mood_note(insights)
    if note:
        lines.append(note)
    if insights.current_challenges:
        lines.append('Note: Be aware of current challenges user has written about: '
                     f"{', '.join(insights.current_challenges)}.")
    if insights.strengths:
        lines.append(f"Note: User's strengths from journal entries: {', '.join(insights.strengths)}. "
                     'You can reference these when appropriate.')
    return '\n\n'.join(lines)
