"""
Card management: posting, editing and deleting feedback cards.

Content is taken as given here. Trimming and rejecting empty or oversized
content is the caller's job (see ``forms.CardForm``).
"""

import logging
from typing import Any, Dict, List

from errors import ErrorKind, RetroError
from models import db, atomic, Card, CardCategory, Participant, Vote
from policy import require_author, require_member

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"


def _parse_category(category) -> CardCategory:
    try:
        return CardCategory(category)
    except ValueError:
        raise RetroError(
            ErrorKind.INVALID_ARGUMENT,
            f"Invalid category '{category}'. Expected one of: {', '.join(CardCategory.values())}",
        )


def create_card(retrospective_id: str, participant_id: str, category: str, content: str) -> str:
    """Post a card as a participant of the retrospective. Returns the card id."""
    with atomic():
        participant = db.session.get(Participant, participant_id)
        require_member(participant, retrospective_id)

        card = Card(
            retrospective_id=retrospective_id,
            participant_id=participant.id,
            category=_parse_category(category),
            content=content,
            vote_count=0,
        )
        db.session.add(card)
        db.session.flush()
        card_id = card.id

    logger.info(f"Card {card_id} created in retrospective {retrospective_id}")
    return card_id


def update_card(card_id: str, participant_id: str, content: str) -> Card:
    """Replace a card's content. Only its author may do this."""
    with atomic():
        card = require_author(db.session.get(Card, card_id), participant_id, "edit")
        card.content = content

    logger.info(f"Card {card_id} updated")
    return card


def delete_card(card_id: str, participant_id: str) -> Dict[str, Any]:
    """
    Delete a card together with every vote cast on it.

    Returns:
        Dictionary with the card's retrospective_id and the number of removed_votes
    """
    with atomic():
        card = require_author(db.session.get(Card, card_id), participant_id, "delete")
        removed = Vote.query.filter_by(card_id=card.id).delete(synchronize_session="fetch")
        retrospective_id = card.retrospective_id
        db.session.delete(card)

    logger.info(f"Card {card_id} deleted with {removed} vote(s)")
    return {'retrospective_id': retrospective_id, 'removed_votes': removed}


def get_card(card_id: str):
    return db.session.get(Card, card_id)


def get_by_retrospective(retrospective_id: str) -> List[Dict[str, Any]]:
    """All cards of a retrospective, oldest first, with the author's current display name."""
    rows = (
        db.session.query(Card, Participant.anonymous_name)
        .outerjoin(Participant, Card.participant_id == Participant.id)
        .filter(Card.retrospective_id == retrospective_id)
        .order_by(Card.created_at)
        .all()
    )
    return [
        card.to_dict(participant_name=name or UNKNOWN_AUTHOR)
        for card, name in rows
    ]
