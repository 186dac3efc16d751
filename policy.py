"""
Authorization and relationship checks shared by every mutation.

Each check either returns quietly or raises ``RetroError``; callers run them
inside the transaction before writing anything.
"""

import logging
from typing import Optional

from errors import ErrorKind, RetroError
from models import Card, Participant, Retrospective

logger = logging.getLogger(__name__)


def require_user(user_id: Optional[int], action: str = "do that") -> int:
    """Caller must be an authenticated user."""
    if user_id is None:
        raise RetroError(ErrorKind.UNAUTHENTICATED, f"Must be logged in to {action}")
    return user_id


def require_found(entity, label: str):
    """Entity looked up for a mutation must exist."""
    if entity is None:
        raise RetroError(ErrorKind.NOT_FOUND, f"{label} not found")
    return entity


def require_moderator(retrospective: Optional[Retrospective], user_id: Optional[int]) -> Retrospective:
    """Caller must be the retrospective's moderator."""
    require_user(user_id)
    require_found(retrospective, "Retrospective")
    if retrospective.moderator_id != user_id:
        logger.warning(f"User {user_id} denied moderator action on retrospective {retrospective.id}")
        raise RetroError(ErrorKind.FORBIDDEN, "Not authorized")
    return retrospective


def require_author(card: Optional[Card], participant_id: str, action: str = "edit") -> Card:
    """Caller must be the participant who wrote the card."""
    require_found(card, "Card")
    if card.participant_id != participant_id:
        logger.warning(f"Participant {participant_id} denied {action} on card {card.id}")
        raise RetroError(ErrorKind.FORBIDDEN, f"Not authorized to {action} this card")
    return card


def require_member(participant: Optional[Participant], retrospective_id: str) -> Participant:
    """Participant must exist and belong to the given retrospective."""
    if participant is None or participant.retrospective_id != retrospective_id:
        raise RetroError(ErrorKind.INVALID_REFERENCE, "Invalid participant")
    return participant


def require_vote_budget(retrospective: Retrospective, used: int) -> None:
    """Participant must have budget left for one more vote."""
    if used >= retrospective.votes_per_participant:
        raise RetroError(
            ErrorKind.VOTE_LIMIT_REACHED,
            f"Vote limit reached ({retrospective.votes_per_participant} per participant)",
        )


def require_valid_budget(votes_per_participant) -> int:
    """Vote budget must be a positive integer."""
    if isinstance(votes_per_participant, bool) or not isinstance(votes_per_participant, int) \
            or votes_per_participant < 1:
        raise RetroError(ErrorKind.INVALID_ARGUMENT, "votes_per_participant must be at least 1")
    return votes_per_participant
