import logging

logger = logging.getLogger('pharma_erp.requests')

MUTATING_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')


class RequestLoggingMiddleware:
    """Logs every mutating API call. Request bodies are never logged."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if request.method in MUTATING_METHODS and request.path.startswith('/api/'):
            user = getattr(request, 'user', None)
            username = user.username if user is not None and user.is_authenticated else 'anonymous'
            level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                level, "%s %s by %s -> %s",
                request.method, request.path, username, response.status_code,
            )

        return response
