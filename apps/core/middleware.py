"""
API key authentication middleware.

Every endpoint except the health probe and the Django admin expects
a valid API key in the X-API-KEY header.
"""

import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = (
    '/health',
    '/admin/',
)


def _reject(status_code, detail):
    return JsonResponse(
        {'error': True, 'status_code': status_code, 'detail': detail},
        status=status_code,
    )


class APIKeyMiddleware:
    """
    Checks the X-API-KEY header against settings.API_KEYS.

    An empty API_KEYS list (local development, tests) disables the check.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(EXEMPT_PREFIXES):
            return self.get_response(request)

        api_keys = getattr(settings, 'API_KEYS', [])
        if not api_keys:
            return self.get_response(request)

        provided_key = request.META.get('HTTP_X_API_KEY', '')

        if not provided_key:
            logger.warning(
                "%s %s rejected: missing API key",
                request.method,
                request.path,
            )
            return _reject(
                401, 'Authentication required. Provide X-API-KEY header.',
            )

        if provided_key not in api_keys:
            logger.warning(
                "%s %s rejected: invalid API key",
                request.method,
                request.path,
            )
            return _reject(403, 'Invalid API key.')

        return self.get_response(request)
