"""
Database models for the Retro Board application.
"""

from contextlib import contextmanager
from datetime import datetime
import enum
from typing import Iterator, Optional
from uuid import uuid4
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def _new_id() -> str:
    return str(uuid4())


def _fmt(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(TIMESTAMP_FORMAT) if value else None


@contextmanager
def atomic() -> Iterator[None]:
    """Run the enclosed block as one transaction: commit on success, roll back on any error."""
    try:
        yield
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


class CardCategory(str, enum.Enum):
    """Retrospective card columns."""

    WENT_WELL = "went-well"
    WENT_POORLY = "went-poorly"
    IDEAS = "ideas"

    @classmethod
    def values(cls):
        return [c.value for c in cls]


class User(db.Model):
    """Model for moderator accounts."""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False, unique=True, index=True)
    email = db.Column(db.String(120), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    retrospectives = db.relationship('Retrospective', backref='moderator', lazy=True)

    def __repr__(self) -> str:
        """String representation of User."""
        return f'<User {self.username}>'

    def set_password(self, password: str) -> None:
        """Hash and set the user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify the user password."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        """Convert user to dictionary."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'retrospective_count': len(self.retrospectives),
            'created_at': _fmt(self.created_at),
        }


class Retrospective(db.Model):
    """A feedback session owned by a moderator."""

    __tablename__ = 'retrospectives'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(200), nullable=False)
    moderator_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    votes_per_participant = db.Column(db.Integer, nullable=False, default=3)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    invite_code = db.Column(db.String(8), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    ended_at = db.Column(db.DateTime, nullable=True)

    participants = db.relationship(
        'Participant',
        backref='retrospective',
        lazy=True,
        order_by='Participant.created_at',
    )
    cards = db.relationship(
        'Card',
        backref='retrospective',
        lazy=True,
        order_by='Card.created_at',
    )

    __table_args__ = (
        db.CheckConstraint('votes_per_participant >= 1', name='ck_retrospective_vote_budget'),
    )

    def __repr__(self) -> str:
        return f'<Retrospective {self.invite_code}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'moderator_id': self.moderator_id,
            'votes_per_participant': self.votes_per_participant,
            'is_active': self.is_active,
            'invite_code': self.invite_code,
            'created_at': _fmt(self.created_at),
            'ended_at': _fmt(self.ended_at),
        }


class Participant(db.Model):
    """One anonymous identity scoped to a retrospective and a client session."""

    __tablename__ = 'participants'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    retrospective_id = db.Column(
        db.String(36), db.ForeignKey('retrospectives.id'), nullable=False, index=True
    )
    anonymous_name = db.Column(db.String(80), nullable=False)
    session_id = db.Column(db.String(128), nullable=False, index=True)
    is_moderator = db.Column(db.Boolean, nullable=False, default=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('session_id', 'retrospective_id', name='uq_participant_session_retro'),
    )

    def __repr__(self) -> str:
        return f'<Participant {self.anonymous_name}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'retrospective_id': self.retrospective_id,
            'anonymous_name': self.anonymous_name,
            'is_moderator': self.is_moderator,
            'created_at': _fmt(self.created_at),
        }


class Card(db.Model):
    """A categorized feedback entry authored by a participant."""

    __tablename__ = 'cards'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    retrospective_id = db.Column(
        db.String(36), db.ForeignKey('retrospectives.id'), nullable=False, index=True
    )
    participant_id = db.Column(db.String(36), db.ForeignKey('participants.id'), nullable=False)
    category = db.Column(
        db.Enum(CardCategory, name='card_category', values_callable=lambda e: [c.value for c in e]),
        nullable=False,
    )
    content = db.Column(db.Text, nullable=False)
    # Mirrors the number of Vote rows for this card; only changed alongside them
    vote_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    votes = db.relationship('Vote', backref='card', lazy=True, cascade='all, delete-orphan')

    __table_args__ = (
        db.CheckConstraint('vote_count >= 0', name='ck_card_vote_count'),
    )

    def __repr__(self) -> str:
        return f'<Card {self.id}>'

    def to_dict(self, participant_name: Optional[str] = None) -> dict:
        data = {
            'id': self.id,
            'retrospective_id': self.retrospective_id,
            'participant_id': self.participant_id,
            'category': self.category.value,
            'content': self.content,
            'vote_count': self.vote_count,
            'created_at': _fmt(self.created_at),
            'updated_at': _fmt(self.updated_at),
        }
        if participant_name is not None:
            data['participant_name'] = participant_name
        return data


class Vote(db.Model):
    """One participant's endorsement of one card."""

    __tablename__ = 'votes'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    card_id = db.Column(
        db.String(36), db.ForeignKey('cards.id', ondelete='CASCADE'), nullable=False, index=True
    )
    participant_id = db.Column(
        db.String(36), db.ForeignKey('participants.id'), nullable=False, index=True
    )
    retrospective_id = db.Column(
        db.String(36), db.ForeignKey('retrospectives.id'), nullable=False, index=True
    )
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('card_id', 'participant_id', name='uq_vote_card_participant'),
    )

    def __repr__(self) -> str:
        return f'<Vote card={self.card_id} participant={self.participant_id}>'

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'card_id': self.card_id,
            'participant_id': self.participant_id,
            'retrospective_id': self.retrospective_id,
            'created_at': _fmt(self.created_at),
        }
