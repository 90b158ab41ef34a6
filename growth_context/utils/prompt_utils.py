"""
Prompt utilities: compaction, token budgeting and reply cleanup.
"""

import re

_WHITESPACE = re.compile(r'\s+')

# Reply token budgets by prompt size
QUICK_TOKENS = 120
STANDARD_TOKENS = 180
DETAILED_TOKENS = 250


def compact_prompt(prompt: str) -> str:
    """Collapse every whitespace run to a single space.

    Args:
        prompt: Prompt text

    Returns:
        Compacted prompt
    """
    return _WHITESPACE.sub(' ', prompt or '').strip()


def optimal_max_tokens(prompt_length: int) -> int:
    """Reply budget for a prompt: longer prompts carry more context and earn longer replies."""
    if prompt_length > 1000:
        return DETAILED_TOKENS
    if prompt_length > 500:
        return STANDARD_TOKENS
    return QUICK_TOKENS


def clean_model_reply(reply: str) -> str:
    """Strip surrounding whitespace and code block markers from a model reply.

    Args:
        reply: Raw model reply

    Returns:
        Cleaned reply text
    """
    reply = reply.strip()

    if reply.startswith('```'):
        reply = reply[3:]
        # Drop a language tag on the opening fence
        first_line, _, rest = reply.partition('\n')
        if rest and first_line.strip().isalpha():
            reply = rest

    if reply.endswith('```'):
        reply = reply[:-3]

    return reply.strip()
