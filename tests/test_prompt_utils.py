from growth_context.utils.prompt_utils import clean_model_reply, compact_prompt, optimal_max_tokens


def test_compact_prompt_collapses_whitespace():
    assert compact_prompt('  You are\n\n  "The Coach"\t- hype  ') == 'You are "The Coach" - hype'
    assert compact_prompt('') == ''


def test_token_budget_grows_with_prompt():
    assert optimal_max_tokens(200) == 120
    assert optimal_max_tokens(501) == 180
    assert optimal_max_tokens(1001) == 250


def test_clean_model_reply_strips_fences():
    assert clean_model_reply('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_model_reply('  plain reply  ') == 'plain reply'
