"""Authorizer protocol — signature/authorization checks."""
from typing import Protocol


class Authorizer(Protocol):
    """Abstract interface for address authorization.

    ``require_auth`` returns normally when ``address`` has authorized the
    current invocation and raises ``Unauthorized`` otherwise.
    """

    def require_auth(self, address: str) -> None: ...
