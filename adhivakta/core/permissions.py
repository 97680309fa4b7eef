from __future__ import annotations

from functools import wraps

from flask_login import current_user

from adhivakta.core.errors import Forbidden, Unauthenticated
from adhivakta.core.identity import current_identity
from adhivakta.core.models import Role


def require_role(*roles: Role | str):
    allowed = {Role(role) for role in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthenticated()
            if current_identity().role not in allowed:
                raise Forbidden()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
