"""
application.context - Request-scoped context.

Every function receives its context explicitly. Two concurrent clients
get two different SessionContext instances; the only shared state is
what lives in the injected stores.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4


@dataclass
class SessionContext:
    """Per-request context passed through all layers.

    Attributes:
        client_id:        Identifier the conversational session is keyed by.
        ip:               Caller address, used for rate limiting and logs.
        image_attachment: Optional image reference sent with the message.
        request_id:       Unique per request, for tracing/logging.
    """
    client_id: str
    ip: str = "local"
    image_attachment: Optional[str] = None
    request_id: str = field(default_factory=lambda: uuid4().hex)

    def new_request(self, image_attachment: Optional[str] = None) -> None:
        """Reset per-request state for a new turn within the same session."""
        self.request_id = uuid4().hex
        self.image_attachment = image_attachment
