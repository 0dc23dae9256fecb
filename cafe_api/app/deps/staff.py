from fastapi import Header, HTTPException


def get_staff_id(x_staff_id: str | None = Header(default=None)) -> str:
    """Return the acting staff member from the ``X-Staff-ID`` header."""
    if not x_staff_id or not x_staff_id.strip():
        raise HTTPException(401, "STAFF_REQUIRED")
    return x_staff_id.strip()
