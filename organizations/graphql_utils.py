import logging

from .exceptions import NotAuthenticatedError
from .jwt_context import get_jwt_caller_address

logger = logging.getLogger(__name__)


def get_caller_address(info):
    """Verified address of the GraphQL caller, or None for anonymous requests."""
    request = info.context
    if hasattr(request, 'caller_address'):
        return request.caller_address
    return get_jwt_caller_address(request)


def require_caller_address(info):
    address = get_caller_address(info)
    if not address:
        raise NotAuthenticatedError()
    return address


def error_payload(payload_cls, error, **extra):
    """Build a failed mutation payload from an ``OrgTokenError``."""
    logger.warning("%s rejected: [%s] %s", payload_cls.__name__, error.code, error.message)
    return payload_cls(success=False, errors=[error.message], error_code=error.code, **extra)
