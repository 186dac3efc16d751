"""
Voting: budget-limited vote toggling and vote-count bookkeeping.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models import db, atomic, Card, Participant, Retrospective, Vote
from policy import require_found, require_member, require_vote_budget

logger = logging.getLogger(__name__)

ACTION_ADDED = "added"
ACTION_REMOVED = "removed"


def _count_votes(participant_id: str, retrospective_id: str) -> int:
    return Vote.query.filter_by(
        participant_id=participant_id, retrospective_id=retrospective_id
    ).count()


def _adjust_vote_count(card_id: str, delta: int) -> None:
    """Shift the cached counter in the database so concurrent voters never overwrite each other."""
    Card.query.filter_by(id=card_id).update(
        {Card.vote_count: Card.vote_count + delta},
        synchronize_session=False,
    )


def _find_vote(card_id: str, participant_id: str) -> Optional[Vote]:
    return Vote.query.filter_by(card_id=card_id, participant_id=participant_id).first()


def _current_vote_count(card_id: str) -> int:
    return db.session.query(Card.vote_count).filter_by(id=card_id).scalar() or 0


def toggle_vote(card_id: str, participant_id: str) -> Dict[str, Any]:
    """
    Add the participant's vote to a card, or take it back if already cast.

    Args:
        card_id: Card being voted on
        participant_id: Voter, must belong to the card's retrospective

    Returns:
        Dictionary with 'action' ("added" or "removed") and the card's new 'vote_count'
    """
    inserting = False
    try:
        with atomic():
            card = require_found(db.session.get(Card, card_id), "Card")
            # Row lock serializes one participant's toggles where the dialect supports it
            participant = db.session.get(Participant, participant_id, with_for_update=True)
            require_member(participant, card.retrospective_id)
            retrospective = require_found(
                db.session.get(Retrospective, card.retrospective_id), "Retrospective"
            )

            existing = _find_vote(card.id, participant.id)
            if existing is not None:
                db.session.delete(existing)
                db.session.flush()
                _adjust_vote_count(card.id, -1)
                action = ACTION_REMOVED
            else:
                used = _count_votes(participant.id, retrospective.id)
                require_vote_budget(retrospective, used)
                inserting = True
                db.session.add(Vote(
                    card_id=card.id,
                    participant_id=participant.id,
                    retrospective_id=retrospective.id,
                ))
                db.session.flush()
                _adjust_vote_count(card.id, 1)
                action = ACTION_ADDED
    except IntegrityError:
        if not inserting:
            raise
        # A concurrent identical toggle already inserted this vote
        logger.warning(f"Concurrent vote on card {card_id} by {participant_id}; keeping existing vote")
        return {'action': ACTION_ADDED, 'vote_count': _current_vote_count(card_id)}

    vote_count = _current_vote_count(card_id)
    logger.info(f"Vote {action} on card {card_id} by participant {participant_id} (now {vote_count})")
    return {'action': action, 'vote_count': vote_count}


def get_participant_votes(participant_id: str, retrospective_id: str) -> List[Vote]:
    """Votes cast by a participant within one retrospective."""
    return (
        Vote.query
        .filter_by(participant_id=participant_id, retrospective_id=retrospective_id)
        .order_by(Vote.created_at)
        .all()
    )


def get_remaining_votes(participant_id: str, retrospective_id: str) -> int:
    """Budget left for a participant; never negative even after the budget was lowered."""
    retrospective = db.session.get(Retrospective, retrospective_id)
    if retrospective is None:
        return 0
    used = _count_votes(participant_id, retrospective_id)
    return max(retrospective.votes_per_participant - used, 0)


def reconcile_vote_counts(retrospective_id: Optional[str] = None) -> int:
    """
    Recompute each card's vote_count from its live Vote rows.

    Args:
        retrospective_id: Limit to one retrospective (optional)

    Returns:
        Number of cards whose counter was corrected
    """
    live_counts = (
        db.session.query(Card, func.count(Vote.id))
        .outerjoin(Vote, Vote.card_id == Card.id)
        .group_by(Card.id)
    )
    if retrospective_id is not None:
        live_counts = live_counts.filter(Card.retrospective_id == retrospective_id)

    corrected = 0
    with atomic():
        for card, count in live_counts.all():
            if card.vote_count != count:
                logger.warning(f"Card {card.id} vote_count {card.vote_count} != {count} live votes")
                card.vote_count = count
                corrected += 1

    logger.info(f"Reconciled vote counts: {corrected} card(s) corrected")
    return corrected
