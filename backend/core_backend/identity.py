"""
Identity for WebSocket connections.

Users, sessions and role sync live in the external identity provider. It
issues a signed token whose claims carry the subscriber id (``sub``) and the
subscriber's role. The order engine trusts those claims and never re-checks
them against a user table.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs

import jwt
from channels.middleware import BaseMiddleware
from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


class Role(models.TextChoices):
    ADMIN = "ADMIN", _("Admin")
    DEV = "DEV", _("Developer")
    MOD = "MOD", _("Moderator")
    CAFE_OWNER = "CAFE_OWNER", _("Cafe Owner")
    USER = "USER", _("Customer")
    PENDING_CAFE = "PENDING_CAFE", _("Pending Cafe")
    ANONYMOUS = "ANONYMOUS", _("Anonymous")


@dataclass(frozen=True)
class Identity:
    """An authenticated (or anonymous) caller as seen by the order engine."""

    subscriber_id: Optional[str]
    role: str = Role.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return bool(self.subscriber_id) and self.role != Role.ANONYMOUS

    @classmethod
    def anonymous(cls) -> "Identity":
        return cls(subscriber_id=None, role=Role.ANONYMOUS)


def identity_from_token(token: Optional[str]) -> Identity:
    """
    Decode an identity provider token into an Identity.

    Missing, expired or tampered tokens give the anonymous identity; public
    queue watchers connect without one.
    """
    if not token:
        return Identity.anonymous()

    try:
        payload = jwt.decode(
            token,
            settings.IDENTITY_TOKEN_SECRET,
            algorithms=settings.IDENTITY_TOKEN_ALGORITHMS,
            options={"verify_signature": True, "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Expired identity token on WebSocket connection")
        return Identity.anonymous()
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid identity token on WebSocket connection: {e}")
        return Identity.anonymous()

    subscriber_id = payload.get("sub")
    role = payload.get("role", Role.USER)
    if not subscriber_id:
        logger.warning("Identity token payload missing sub claim")
        return Identity.anonymous()
    if role not in Role.values:
        logger.warning(f"Identity token carries unknown role {role!r}, treating as customer")
        role = Role.USER

    return Identity(subscriber_id=str(subscriber_id), role=role)


class IdentityMiddleware(BaseMiddleware):
    """
    Puts the caller's Identity on ``scope['identity']``.

    The token is read from the ``token`` query parameter (browsers cannot set
    headers on WebSocket upgrades) or an ``Authorization: Bearer`` header.
    """

    async def __call__(self, scope, receive, send):
        if scope["type"] == "websocket":
            scope["identity"] = identity_from_token(self.extract_token(scope))
        return await super().__call__(scope, receive, send)

    @staticmethod
    def extract_token(scope) -> Optional[str]:
        query_string = scope.get("query_string", b"").decode("utf-8")
        tokens = parse_qs(query_string).get("token")
        if tokens:
            return tokens[0]

        headers = dict(scope.get("headers", []))
        authorization = headers.get(b"authorization", b"").decode("utf-8")
        if authorization.lower().startswith("bearer "):
            return authorization[7:].strip()
        return None
