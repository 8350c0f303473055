"""Search query enhancement through a DeepSeek-compatible chat completion API.

The enhancer never raises: when it is unconfigured or the upstream call
fails, the caller gets the original query back along with an error string.
"""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

MODEL = 'deepseek-chat'
TEMPERATURE = 0.3
MAX_TOKENS = 300
REQUEST_TIMEOUT = 15

SYSTEM_PROMPT_HEAD = """You are an AI assistant that enhances search queries for a local business and events discovery platform.
Your task is to improve the search query by:
1. Identifying intent (looking for restaurants, services, events, specific locations)
2. Expanding on abbreviated or incomplete queries
3. Normalizing location references
4. Adding relevant context that might be missing
5. Consider both business locations and local events in your enhancements
6. Adding search category tags to help categorization (e.g., #yoga, #restaurant, #education)
"""

NEAR_ME_INSTRUCTION = '7. Include terms related to proximity and location since the user wants nearby results\n'

SYSTEM_PROMPT_TAIL = """8. Return ONLY the enhanced search query with appropriate category tags. Do not add any explanation or additional text.

For specialized searches like "yoga classes", ensure the enhanced query contains terms that would match specifically with yoga studios or fitness centers, not general businesses."""


def build_messages(query, context=None, near_me=False):
    """Chat messages sent to the completion endpoint."""
    system_prompt = SYSTEM_PROMPT_HEAD + (NEAR_ME_INSTRUCTION if near_me else '') + SYSTEM_PROMPT_TAIL

    user_prompt = f'Original search query: "{query}"'
    if context:
        user_prompt += f'\nContext: {context}'
    if near_me:
        user_prompt += '\nThe user is looking for results near their current location.'

    return [
        {'role': 'system', 'content': system_prompt},
        {'role': 'user', 'content': user_prompt},
    ]


def _fallback(query, error):
    logger.warning(f'[SEARCH] Returning original query unchanged: {error}')
    return {'original': query, 'enhanced': query, 'error': error}


def enhance_query(query, context=None, near_me=False):
    """Rewrite a search query for better matching.

    Returns {'original', 'enhanced', 'nearMe'} on success and
    {'original', 'enhanced': query, 'error'} on any failure.
    """
    api_key = current_app.config.get('DEEPSEEK_API_KEY')
    if not api_key:
        return _fallback(query, 'DeepSeek API key is not configured')

    logger.info(f'[SEARCH] Enhancing query: {query!r} (context: {bool(context)}, near me: {bool(near_me)})')

    try:
        response = requests.post(
            current_app.config['DEEPSEEK_API_URL'],
            headers={
                'Authorization': f'Bearer {api_key}',
                'Content-Type': 'application/json',
            },
            json={
                'model': MODEL,
                'messages': build_messages(query, context, near_me),
                'temperature': TEMPERATURE,
                'max_tokens': MAX_TOKENS,
            },
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        return _fallback(query, f'Failed to reach DeepSeek API: {e}')

    if not response.ok:
        try:
            detail = response.json()
        except ValueError:
            detail = response.text[:500]
        return _fallback(query, f'DeepSeek API error: {detail}')

    try:
        enhanced = response.json()['choices'][0]['message']['content'].strip()
    except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
        return _fallback(query, f'Unexpected DeepSeek response: {e}')

    if not enhanced:
        return _fallback(query, 'DeepSeek returned an empty query')

    return {'original': query, 'enhanced': enhanced, 'nearMe': bool(near_me)}
