"""
Session context - who the core is acting for.

Authentication lives in an external service. Everything the core needs
from it is captured here and passed explicitly into the store adapter,
the classifier client and the intent handlers.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    """
    Identity of the authenticated user for one request.

    Attributes:
        user_id: Owner id; every store read and write is scoped by it
        access_token: The bearer token the request arrived with
    """
    user_id: str
    access_token: Optional[str] = None
