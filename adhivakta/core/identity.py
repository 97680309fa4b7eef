from __future__ import annotations

from dataclasses import dataclass

from flask import g
from flask_login import current_user

from adhivakta.core.errors import Unauthenticated
from adhivakta.core.models import Role


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_lawyer(self) -> bool:
        return self.role == Role.LAWYER

    @property
    def is_client(self) -> bool:
        return self.role == Role.CLIENT

    @classmethod
    def from_user(cls, user) -> Identity:
        return cls(user_id=user.id, role=Role(user.role))


def load_identity() -> None:
    g.identity = None
    if not current_user.is_authenticated:
        return
    g.identity = Identity.from_user(current_user)


def current_identity() -> Identity:
    identity = getattr(g, "identity", None)
    if identity is None:
        raise Unauthenticated()
    return identity
