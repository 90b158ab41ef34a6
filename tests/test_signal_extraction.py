from growth_context.models.core import EmotionTag, EnergyTag, Topic
from growth_context.services.signal_extraction import (analyze, detect_emotion, detect_emotion_mentions, detect_energy,
                                                       determine_needs, extract_challenges, extract_goals,
                                                       extract_insights, extract_relationships, extract_topics)

PROMOTION = "Holy shit I just got promoted and I'm SO excited!!"


def test_promotion_message_signals():
    signals = analyze(PROMOTION)

    assert signals.emotion == EmotionTag.EXCITED
    assert signals.energy == EnergyTag.HIGH
    assert Topic.WORK in signals.topics


def test_analyze_is_deterministic():
    text = 'I want to get fit this year, but my boss keeps me at the office late. It is hard.'
    assert analyze(text) == analyze(text)


def test_degenerate_input_yields_neutral_defaults():
    for text in ('', None, '   ', '🙂🙂🙂'):
        signals = analyze(text)
        assert signals.emotion == EmotionTag.NEUTRAL
        assert signals.energy == EnergyTag.MEDIUM
        assert signals.topics == [Topic.GENERAL]
        assert signals.goals == []
        assert signals.challenges == []
        assert signals.relationships == []
        assert signals.insights == []


def test_emotion_tie_goes_to_first_declared():
    assert detect_emotion("I'm happy but stressed") == EmotionTag.STRESSED


def test_emotion_mentions_report_intensity_and_keywords():
    mentions = detect_emotion_mentions('This is amazing and awesome')

    assert len(mentions) == 1
    assert mentions[0].emotion == EmotionTag.EXCITED
    assert mentions[0].intensity == 2
    assert mentions[0].keywords == ['amazing', 'awesome']


def test_curly_apostrophes_match_keyword_tables():
    assert detect_emotion('I don’t know what to do') == EmotionTag.CONFUSED


def test_energy_levels():
    assert detect_energy('THIS IS huge') == EnergyTag.HIGH
    assert detect_energy('wow!! really') == EnergyTag.HIGH
    assert detect_energy("I'm so tired today") == EnergyTag.LOW
    assert detect_energy('Just a normal day.') == EnergyTag.MEDIUM


def test_topics_never_empty_and_keep_table_order():
    assert extract_topics('nothing to see') == [Topic.GENERAL]
    assert extract_topics('My family and my job') == [Topic.WORK, Topic.RELATIONSHIPS]


def test_goals_are_extracted():
    assert extract_goals('I want to run a marathon this year.') == ['run a marathon this year']
    assert extract_goals('I want to go.') == []


def test_insights_are_extracted():
    insights = extract_insights('Today I realized that rest is productive.')
    assert 'rest is productive' in insights


def test_challenges_split_by_sentence():
    challenges = extract_challenges('Work is really hard. I love weekends.')

    assert len(challenges) == 1
    assert challenges[0].challenge == 'Work is really hard'
    assert challenges[0].keywords == ['hard']
    assert challenges[0].severity == 1


def test_relationships_by_category():
    relationships = extract_relationships('My boss and my friend')
    assert {r.category for r in relationships} == {'professional', 'social'}
    assert all(r.mentions == 1 for r in relationships)


def test_needs_by_emotion():
    assert determine_needs(EmotionTag.EXCITED) == ['hype', 'celebration', 'encouragement']
    assert determine_needs(EmotionTag.REFLECTIVE) == ['support', 'understanding']
