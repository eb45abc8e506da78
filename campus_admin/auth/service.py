"""Access-token issuing.

Tokens are signed with the shared JWT secret and carry the employee id
(``sub``) and the role the caller acts under. Credential checks and the
login screen live in the portal that issues them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from campus_admin.common.constants import UserRole
from campus_admin.config import settings


def create_access_token(
    employee_id: uuid.UUID,
    role: UserRole,
    *,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Return an encoded access JWT for *employee_id* acting as *role*."""
    lifetime = expires_in or timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(employee_id),
        "role": role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
