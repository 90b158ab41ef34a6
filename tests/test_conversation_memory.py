from datetime import datetime

from conftest import make_turn

from growth_context.models.core import EmotionalPatternEntry, EmotionTag, TimeBucket, Topic
from growth_context.services.conversation_memory import FIRST_CONVERSATION_NOTICE, ConversationMemoryStore
from growth_context.services.document_import import analyze_chunk

THERAPY_CHUNK = 'My therapist says I get stressed at work because of perfectionism.'
GARDEN_CHUNK = 'Gardening on weekends keeps me calm and peaceful outdoors.'


def sample(emotion):
    return EmotionalPatternEntry(state=emotion, timestamp=datetime(2024, 5, 1, 10), context=[Topic.GENERAL])


def test_turn_window_keeps_latest_fifty():
    store = ConversationMemoryStore(max_turns=50)
    for i in range(51):
        store.record_turn(make_turn(f'message {i}'))

    assert len(store.turns) == 50
    assert store.turns[0].user_input == 'message 1'
    assert store.turns[-1].user_input == 'message 50'


def test_similar_turns_rank_by_shared_words_with_stable_ties():
    store = ConversationMemoryStore()
    first = make_turn('I love hiking in the mountains')
    unrelated = make_turn('Work deadlines are crushing me')
    second = make_turn('hiking and mountains and rivers')
    for turn in (first, unrelated, second):
        store.record_turn(turn)

    assert store.find_similar_turns('planning mountains hiking trip') == [first, second]


def test_similar_turns_exclude_zero_overlap():
    store = ConversationMemoryStore()
    store.record_turn(make_turn('I love hiking in the mountains'))

    assert store.find_similar_turns('zzzz qqqq') == []
    assert store.find_similar_turns('') == []


def test_similar_turns_top_three():
    store = ConversationMemoryStore()
    for i in range(5):
        store.record_turn(make_turn(f'running practice {i}'))

    assert len(store.find_similar_turns('running')) == 3


def test_pattern_summary_counts_time_buckets():
    store = ConversationMemoryStore()
    for hour in (8, 13, 19, 23, 3):
        store.record_turn(make_turn('hello', emotion=EmotionTag.HAPPY, hour=hour, topics=[Topic.WORK]))

    summary = store.recent_pattern_summary()

    assert summary.time_of_day == {
        TimeBucket.MORNING: 1,
        TimeBucket.AFTERNOON: 1,
        TimeBucket.EVENING: 1,
        TimeBucket.NIGHT: 2,
    }
    assert summary.emotions == {EmotionTag.HAPPY: 5}
    assert summary.topics == {Topic.WORK: 5}


def test_emotional_trend_needs_three_samples():
    store = ConversationMemoryStore()
    store.record_emotional_sample(sample(EmotionTag.HAPPY))
    store.record_emotional_sample(sample(EmotionTag.HAPPY))

    assert store.emotional_trend() is None


def test_emotional_trend_direction():
    store = ConversationMemoryStore()
    for emotion in (EmotionTag.SAD, EmotionTag.ANXIOUS, EmotionTag.NEUTRAL, EmotionTag.HAPPY):
        store.record_emotional_sample(sample(emotion))

    trend = store.emotional_trend()

    assert (trend.improving, trend.stable, trend.concerning) == (1, 1, 2)
    assert trend.direction == 'concerning'


def test_relevant_imported_context_scores_words_emotion_and_theme():
    store = ConversationMemoryStore()
    therapy = analyze_chunk(THERAPY_CHUNK, 'therapy.txt')
    garden = analyze_chunk(GARDEN_CHUNK, 'garden.txt')
    store.add_imported_chunks([garden, therapy])

    relevant = store.relevant_imported_context("I'm so stressed about work deadlines", EmotionTag.STRESSED)

    assert relevant == [therapy]


def test_first_conversation_notice():
    store = ConversationMemoryStore()
    assert store.format_context_for_model('hello', EmotionTag.NEUTRAL) == FIRST_CONVERSATION_NOTICE


def test_context_includes_history_and_imports():
    store = ConversationMemoryStore()
    store.record_turn(make_turn('I love hiking in the mountains', emotion=EmotionTag.HAPPY))
    store.record_turn(make_turn('Work deadlines are crushing me', emotion=EmotionTag.STRESSED))
    long_chunk = analyze_chunk(THERAPY_CHUNK + ' ' + 'x' * 300, 'therapy.txt')
    store.add_imported_chunks([long_chunk])

    context = store.format_context_for_model('stressed about work again', EmotionTag.STRESSED)

    assert context.startswith('CONVERSATION CONTEXT (2 previous chats):')
    assert 'Recent emotional pattern: Often feeling happy (1 times recently)' in context
    assert 'Similar past conversation: User said "Work deadlines are crushing me" and felt stressed' in context
    assert 'IMPORTED DOCUMENT INSIGHTS:' in context
    assert f'From "therapy.txt": {long_chunk.content[:200]}...' in context
    assert 'Emotions found: stressed' in context
    assert 'Key themes: work' in context


def test_emotion_counts_cover_all_samples():
    store = ConversationMemoryStore()
    for emotion in (EmotionTag.HAPPY, EmotionTag.HAPPY, EmotionTag.SAD):
        store.record_emotional_sample(sample(emotion))

    assert store.emotion_counts() == {EmotionTag.HAPPY: 2, EmotionTag.SAD: 1}


def test_snapshot_restores_equal_store():
    store = ConversationMemoryStore()
    store.record_turn(make_turn('I love hiking in the mountains', emotion=EmotionTag.HAPPY))
    store.record_emotional_sample(sample(EmotionTag.HAPPY))
    store.add_imported_chunks([analyze_chunk(THERAPY_CHUNK, 'therapy.txt')])

    restored = ConversationMemoryStore.restore(store.snapshot())

    assert restored.snapshot() == store.snapshot()
    assert restored.turns.to_list() == store.turns.to_list()
