"""Request dependencies: the service context and the authenticated identity."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from symptomlog.auth.gate import Identity
from symptomlog.context import ServiceContext
from symptomlog.utils.exceptions import Unauthorized

_bearer_scheme = HTTPBearer(auto_error=False)


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    context: ServiceContext = Depends(get_context),
) -> Identity:
    """Resolve the caller from the Authorization bearer token.

    The returned identity is the only source of the owner id for storage calls.
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Missing bearer token")
    return context.auth_gate.verify(credentials.credentials)
