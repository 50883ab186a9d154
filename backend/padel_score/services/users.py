from flask import current_app
from sqlalchemy.exc import IntegrityError

from padel_score.models import User, utcnow
from padel_score.services.matches.outcomes import DuplicateEmail, Success


class UserDirectory:
    """Insert-or-update of user profiles keyed by the caller supplied id."""

    def __init__(self, session):
        self.session = session

    def upsert(self, user_id: str, name=None, email=None):
        user = self.session.get(User, user_id)
        if user is None:
            user = User(id=user_id, created_at=utcnow())
            self.session.add(user)
        user.name = name
        user.email = email
        user.updated_at = utcnow()
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            current_app.logger.warning(f"[user-upsert] user={user_id} email already taken")
            return DuplicateEmail('Email already exists')
        current_app.logger.info(f"[user-upsert] user={user_id}")
        return Success(user.to_dict())
