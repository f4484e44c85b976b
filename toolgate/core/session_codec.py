"""
session_codec.py — Encode/decode the client-held session token.

The token is the session's camelCase JSON payload, base64url-encoded and
HMAC-signed with itsdangerous. The signature makes tampering detectable; it
does not replace re-validation against LearnWorlds, which the refresh state
machine still performs on its window.
"""
from __future__ import annotations

from typing import Optional

from itsdangerous import BadData, URLSafeSerializer
from pydantic import ValidationError

from .. import config
from .exceptions import MalformedToken
from .models import SESSION_ADAPTER, Session, StudentView


class SessionCodec:
    """Pure encoder/decoder; no I/O."""

    def __init__(self, secret: Optional[str] = None, salt: str = "session"):
        self._serializer = URLSafeSerializer(secret or config.SESSION_SECRET, salt=salt)

    def encode(self, session: Session) -> str:
        payload = SESSION_ADAPTER.dump_python(session, mode="json", by_alias=True)
        return self._serializer.dumps(payload)

    def decode(self, token: str) -> Session:
        if not token:
            raise MalformedToken("Empty session token.")
        try:
            payload = self._serializer.loads(token)
        except BadData as exc:
            raise MalformedToken("Session token signature or encoding is invalid.") from exc
        try:
            return SESSION_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise MalformedToken("Session payload does not match the session schema.") from exc


class StudentViewCodec:
    """Same scheme, separate salt, for the admin preview overlay cookie."""

    def __init__(self, secret: Optional[str] = None):
        self._serializer = URLSafeSerializer(
            secret or config.SESSION_SECRET, salt="student-view"
        )

    def encode(self, view: StudentView) -> str:
        return self._serializer.dumps(view.model_dump(mode="json", by_alias=True))

    def decode(self, token: str) -> StudentView:
        try:
            return StudentView.model_validate(self._serializer.loads(token))
        except (BadData, ValidationError) as exc:
            raise MalformedToken("Student view cookie is invalid.") from exc


_default_codec: Optional[SessionCodec] = None


def _codec() -> SessionCodec:
    global _default_codec
    if _default_codec is None:
        _default_codec = SessionCodec()
    return _default_codec


def encode_session(session: Session) -> str:
    return _codec().encode(session)


def decode_session(token: str) -> Session:
    return _codec().decode(token)
