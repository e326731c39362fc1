"""
User repository backed by SQLAlchemy.

Only the fields needed to attribute books live here; credentials are
managed elsewhere.
"""
from datetime import datetime
from typing import Optional
import uuid
from sqlalchemy.orm import Session

from domain.models import Author
from repositories.models import UserORM


class UsersRepository:
    def create_user(self, session: Session, name: str, email: str, user_id: Optional[str] = None) -> Author:
        orm = UserORM(
            id=user_id or str(uuid.uuid4()),
            name=name,
            email=email,
            created_at=datetime.utcnow(),
        )
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return Author(id=orm.id, name=orm.name)

    def get_user(self, session: Session, user_id: str) -> Optional[Author]:
        orm = session.get(UserORM, user_id)
        return Author(id=orm.id, name=orm.name) if orm else None
