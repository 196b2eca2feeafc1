from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Dict, Optional

from fastapi import Request

FORWARDED_FOR = "x-forwarded-for"
REQUEST_ID = "x-request-id"


def client_ip(headers: Dict[str, str], peer: Optional[str]) -> Optional[str]:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = headers.get(FORWARDED_FOR)
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return peer or None


@dataclass(frozen=True)
class RequestContext:
    """What the metadata row needs to know about the HTTP request."""

    ip: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    user_agent: Optional[str] = None
    request_id: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        headers = dict(request.headers)  # keys already lower-cased
        peer = request.client.host if request.client else None
        return cls(
            ip=client_ip(headers, peer),
            headers=headers,
            user_agent=headers.get("user-agent") or None,
            request_id=headers.get(REQUEST_ID) or None,
        )

    def headers_json(self) -> str:
        return json.dumps(self.headers)


def get_request_context(request: Request) -> RequestContext:
    return RequestContext.from_request(request)
