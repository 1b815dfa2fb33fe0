# backend/trainer_booking/api/dependencies/auth.py
"""
Authentication and authorization dependencies.

The bearer token's subject is either a user (client or admin) or a trainer.
Lookups run in a worker thread so the event loop is never blocked on the
database.
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ...auth import get_current_subject
from ...core.exceptions import ForbiddenException, UnauthorizedException
from ...database import get_db
from ...models.trainer import Trainer
from ...models.user import User
from ...repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


@dataclass
class Caller:
    """The authenticated principal behind a request."""

    id: str
    user: Optional[User] = None
    trainer: Optional[Trainer] = None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin


def _resolve_caller(db: Session, subject: str) -> Optional[Caller]:
    user = RepositoryFactory.create_user_repository(db).get_by_id(subject)
    if user is not None:
        return Caller(id=subject, user=user)
    trainer = RepositoryFactory.create_trainer_repository(db).get_by_id(subject)
    if trainer is not None:
        return Caller(id=subject, trainer=trainer)
    return None


async def get_current_caller(
    subject: str = Depends(get_current_subject),
    db: Session = Depends(get_db),
) -> Caller:
    caller = await asyncio.to_thread(_resolve_caller, db, subject)
    if caller is None:
        logger.warning(f"Bearer token subject {subject} matches no user or trainer")
        raise UnauthorizedException("Could not validate credentials", code="UNKNOWN_PRINCIPAL")
    return caller


async def get_current_client(caller: Caller = Depends(get_current_caller)) -> User:
    """Only users can book and list their own bookings."""
    if caller.user is None:
        raise ForbiddenException("Only client accounts can do this", code="CLIENT_ONLY")
    return caller.user


async def require_admin(caller: Caller = Depends(get_current_caller)) -> Caller:
    if not caller.is_admin:
        raise ForbiddenException("Admin access required", code="ADMIN_ONLY")
    return caller
