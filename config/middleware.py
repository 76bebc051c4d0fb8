from django.db import close_old_connections

from organizations.jwt_context import get_jwt_caller_address


class CloseDbConnectionsMiddleware:
    """
    Ensures Django drops any stale DB connections at the start of each request
    and exposes the verified caller address as ``request.caller_address``.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        close_old_connections()
        request.caller_address = get_jwt_caller_address(request)
        response = self.get_response(request)
        return response
