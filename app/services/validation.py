# app/services/validation.py
from app.core.errors import ValidationError


def require_fields(**fields) -> None:
    missing = [
        name
        for name, value in fields.items()
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(
            "Missing required parameters: " + ", ".join(missing),
            details={"fields": missing},
        )


def require_session_id(session_id: str) -> str:
    """sessionId wordt één key-segment; geen paden, anders delen sessies een prefix."""
    if "/" in session_id or "\\" in session_id or session_id.strip() in (".", ".."):
        raise ValidationError(
            "sessionId may not contain path separators",
            details={"sessionId": session_id},
        )
    return session_id
