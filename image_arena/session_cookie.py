import base64
import hashlib
import hmac
import uuid


def session_signature(secret: str, session_id: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def sign_session(secret: str, session_id: str) -> str:
    return f"{session_id}.{session_signature(secret, session_id)}"


def unsign_session(secret: str, cookie_value: str | None) -> str | None:
    """Return the session id if the cookie carries a valid signature."""
    if not cookie_value or "." not in cookie_value:
        return None
    session_id, sig = cookie_value.rsplit(".", 1)
    if not session_id:
        return None
    if not hmac.compare_digest(session_signature(secret, session_id), sig):
        return None
    return session_id


def new_session_id() -> str:
    return str(uuid.uuid4())
