"""
Caller identity for GraphQL requests.

The acting address is the ``address`` claim of a signed token sent as
``Authorization: JWT <token>``. Tokens are issued by the operator with the
``issue_caller_token`` command; any other request header is ignored.
"""

import logging

from django.utils import timezone
from graphql_jwt.exceptions import JSONWebTokenError
from graphql_jwt.settings import jwt_settings
from graphql_jwt.utils import get_http_authorization, get_payload, jwt_encode

from .access import require_not_treasury
from .exceptions import InvalidValueError

logger = logging.getLogger(__name__)

ADDRESS_CLAIM = 'address'


def caller_payload(address, now=None):
    now = now or timezone.now()
    payload = {
        ADDRESS_CLAIM: address,
        'origIat': int(now.timestamp()),
    }
    if jwt_settings.JWT_VERIFY_EXPIRATION:
        payload['exp'] = now + jwt_settings.JWT_EXPIRATION_DELTA
    return payload


def issue_caller_token(address, now=None):
    """Sign a token that lets its bearer act as ``address``."""
    address = (address or '').strip()
    if not address:
        raise InvalidValueError("Caller address must not be empty")
    require_not_treasury(address, "a caller")
    return jwt_encode(caller_payload(address, now))


def get_jwt_caller_address(request):
    """
    Verified caller address for ``request``, or None.

    Missing, expired and badly signed tokens all resolve to None, so the
    request proceeds as anonymous and every admin or donor check fails.
    """
    token = get_http_authorization(request)
    if not token:
        return None

    try:
        payload = get_payload(token)
    except JSONWebTokenError as e:
        logger.warning("Rejected caller token: %s", e)
        return None

    address = payload.get(ADDRESS_CLAIM)
    if not isinstance(address, str) or not address.strip():
        logger.warning("Caller token carries no %s claim", ADDRESS_CLAIM)
        return None
    return address.strip()
