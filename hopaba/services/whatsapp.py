"""WhatsApp messaging through the Gupshup HTTP gateway."""

import json
import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

GUPSHUP_URL = 'https://api.gupshup.io/sm/api/v1/msg'
REQUEST_TIMEOUT = 10


def is_whatsapp_configured() -> bool:
    return bool(current_app.config.get('GUPSHUP_API_KEY'))


def send_whatsapp_message(destination: str, text: str) -> tuple[bool, str | None]:
    """Send a plain text WhatsApp message.

    destination may carry a leading '+', Gupshup wants bare digits.

    Returns:
        (True, None) on success, (False, error_message) otherwise.
    """
    if not is_whatsapp_configured():
        logger.warning('[WHATSAPP] GUPSHUP_API_KEY not configured - skipping message')
        return False, 'WhatsApp gateway not configured'

    api_key = current_app.config['GUPSHUP_API_KEY']
    app_name = current_app.config.get('GUPSHUP_APP_NAME', 'ChowkashiApp')
    number = destination.lstrip('+')

    try:
        response = requests.post(
            GUPSHUP_URL,
            headers={
                'apikey': api_key,
                'Content-Type': 'application/x-www-form-urlencoded',
            },
            data={
                'channel': 'whatsapp',
                'source': app_name,
                'destination': number,
                'message': json.dumps({'type': 'text', 'text': text}),
                'src.name': app_name,
            },
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f'[WHATSAPP] Request to {number} failed: {e}')
        return False, str(e)

    if not response.ok:
        logger.error(f'[WHATSAPP] Gupshup returned {response.status_code} for {number}: {response.text[:200]}')
        return False, f'Gupshup error {response.status_code}'

    logger.info(f'[WHATSAPP] Message sent to {number}')
    return True, None
