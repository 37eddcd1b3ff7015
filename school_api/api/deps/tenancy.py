# school_api/api/deps/tenancy.py
from typing import Any, Dict

from fastapi import Depends, HTTPException, status

from school_api.api.deps.auth import get_current_user


def require_school(ctx: Dict[str, Any] = Depends(get_current_user)) -> str:
    """Resolve the active school for this request from the token."""
    school_id = ctx["claims"].get("active_school_id")
    if not school_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active school selected",
        )
    return str(school_id)
