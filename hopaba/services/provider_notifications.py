"""Tell matching providers about a new service request over WhatsApp."""

import logging

from hopaba.constants import same_category
from hopaba.models import ServiceProvider
from hopaba.services.whatsapp import send_whatsapp_message

logger = logging.getLogger(__name__)

DESCRIPTION_PREVIEW_LENGTH = 200
NO_MATCHES_MESSAGE = 'No matching providers to notify.'


def find_matching_providers(service_request):
    """Approved providers in the request's category, subcategory and city.

    Category and city compare case-insensitively; when the request names a
    subcategory the provider must list it too.
    """
    candidates = ServiceProvider.query.filter_by(approval_status='approved').all()
    city = (service_request.city or '').strip().lower()
    return [
        provider for provider in candidates
        if same_category(provider.category, service_request.category)
        and provider.has_subcategory(service_request.subcategory)
        and (provider.city or '').strip().lower() == city
    ]


def _format_budget(budget):
    if budget is None:
        return 'Not specified'
    if float(budget).is_integer():
        return f'₹{int(budget)}'
    return f'₹{budget}'


def build_request_message(service_request):
    """WhatsApp text announcing a request to a provider."""
    category = service_request.category
    if service_request.subcategory:
        category = f'{category} > {service_request.subcategory}'

    description = service_request.description or ''
    if len(description) > DESCRIPTION_PREVIEW_LENGTH:
        description = description[:DESCRIPTION_PREVIEW_LENGTH] + '...'

    return (
        '🔔 *New Service Request on Chowkashi!*\n\n'
        'A new customer is looking for your services.\n\n'
        f'📋 *Title:* {service_request.title}\n'
        f'🏷️ *Category:* {category}\n'
        f'📍 *Location:* {service_request.area}, {service_request.city}\n'
        f'💰 *Budget:* {_format_budget(service_request.budget)}\n\n'
        f'📝 *Description:*\n{description}\n\n'
        'Please check your dashboard to respond.'
    )


def notify_matching_providers(service_request):
    """Send the request announcement to every matching provider with WhatsApp.

    Every send is attempted; a failed send is logged and counted, never raised.
    """
    providers = [p for p in find_matching_providers(service_request) if p.whatsapp]
    if not providers:
        logger.info(f'[WHATSAPP] No providers to notify for request {service_request.id}')
        return {'message': NO_MATCHES_MESSAGE, 'notified': 0, 'failed': 0}

    text = build_request_message(service_request)
    notified = 0
    failed = 0

    for provider in providers:
        ok, error = send_whatsapp_message(provider.whatsapp, text)
        if ok:
            notified += 1
        else:
            failed += 1
            logger.warning(f'[WHATSAPP] Could not notify provider {provider.id}: {error}')

    logger.info(f'[WHATSAPP] Request {service_request.id}: notified {notified}, failed {failed}')
    return {
        'message': f'Notified {notified} of {len(providers)} matching providers.',
        'notified': notified,
        'failed': failed,
    }
