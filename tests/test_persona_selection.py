import pytest

from growth_context.models.core import EmotionTag, EnergyTag, PersonaId
from growth_context.services.persona_selection import (PERSONA_BY_EMOTION, PERSONAS, UserState, get_persona,
                                                       render_persona_prompt, select_persona)


def test_every_emotion_maps_to_a_defined_persona():
    for emotion in EmotionTag:
        persona = select_persona(emotion)
        assert persona in PERSONAS
    assert set(PERSONA_BY_EMOTION) == set(EmotionTag)


@pytest.mark.parametrize('emotion,expected', [
    (EmotionTag.EXCITED, PersonaId.COACH),
    (EmotionTag.STRESSED, PersonaId.FRIEND),
    (EmotionTag.SAD, PersonaId.THERAPIST),
    (EmotionTag.CONFUSED, PersonaId.MENTOR),
    (EmotionTag.ANGRY, PersonaId.CHALLENGER),
    (EmotionTag.REFLECTIVE, PersonaId.SAGE),
    (EmotionTag.NEUTRAL, PersonaId.FRIEND),
])
def test_selection_table(emotion, expected):
    assert select_persona(emotion, EnergyTag.MEDIUM) == expected


def test_unknown_input_selects_friend():
    assert select_persona('garbage') == PersonaId.FRIEND
    assert select_persona(None) == PersonaId.FRIEND
    assert select_persona(42) == PersonaId.FRIEND


def test_string_emotions_are_accepted():
    assert select_persona('EXCITED') == PersonaId.COACH


def test_personas_are_read_only():
    with pytest.raises(TypeError):
        PERSONAS[PersonaId.COACH] = None


def test_unknown_persona_renders_nothing():
    assert get_persona('wizard') is None
    assert render_persona_prompt('wizard', 'hello', UserState(), False) is None


def test_prompt_uses_example_for_user_emotion():
    prompt = render_persona_prompt(PersonaId.COACH, 'work is crazy', UserState(EmotionTag.STRESSED, EnergyTag.LOW), False)

    assert prompt.startswith('You are "The Coach"')
    assert 'this is where champions are made' in prompt
    assert "User's emotional state: stressed" in prompt
    assert "User's energy level: low" in prompt
    assert 'Profanity allowed: NO' in prompt
    assert 'exactly ONE follow-up question' in prompt
    assert prompt.endswith('Respond as The Coach:')


def test_prompt_falls_back_to_excited_example():
    prompt = render_persona_prompt(PersonaId.FRIEND, 'meh', UserState(EmotionTag.SAD), True)

    assert "I'm getting secondhand excitement" in prompt
    assert 'Profanity allowed: YES' in prompt
    assert 'Feel free to swear naturally' in prompt
