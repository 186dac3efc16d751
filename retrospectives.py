"""
Retrospective lifecycle: creation, invite-code lookup, joining, settings.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from errors import ErrorKind, RetroError
from models import db, atomic, Participant, Retrospective
from policy import require_found, require_moderator, require_user, require_valid_budget
from utils import generate_anonymous_name, generate_invite_code, normalize_invite_code

logger = logging.getLogger(__name__)

MAX_INVITE_CODE_ATTEMPTS = 10
MODERATOR_SESSION_PREFIX = "moderator-"


def moderator_session_id(user_id: int) -> str:
    """Session id reserved for a moderator's own participant row."""
    return f"{MODERATOR_SESSION_PREFIX}{user_id}"


def _unique_invite_code() -> str:
    """Draw invite codes until one is unused by any retrospective, active or not."""
    for _ in range(MAX_INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        if not Retrospective.query.filter_by(invite_code=code).first():
            return code
    logger.error(f"No free invite code after {MAX_INVITE_CODE_ATTEMPTS} attempts")
    raise RetroError(ErrorKind.UNAVAILABLE, "Could not allocate a unique invite code, try again")


def create_retrospective(name: str, votes_per_participant: int, user_id: Optional[int]) -> Dict[str, Any]:
    """
    Create a retrospective and its moderator participant in one transaction.

    Args:
        name: Display name of the session
        votes_per_participant: Vote budget for each participant (>= 1)
        user_id: Authenticated caller, becomes the moderator

    Returns:
        Dictionary with retrospective_id, invite_code and participant_id
    """
    require_user(user_id, "create a retrospective")
    require_valid_budget(votes_per_participant)

    with atomic():
        retrospective = Retrospective(
            name=name,
            moderator_id=user_id,
            votes_per_participant=votes_per_participant,
            is_active=True,
            invite_code=_unique_invite_code(),
        )
        db.session.add(retrospective)
        db.session.flush()

        moderator = Participant(
            retrospective_id=retrospective.id,
            anonymous_name=generate_anonymous_name(),
            session_id=moderator_session_id(user_id),
            is_moderator=True,
            user_id=user_id,
        )
        db.session.add(moderator)
        db.session.flush()
        result = {
            'retrospective_id': retrospective.id,
            'invite_code': retrospective.invite_code,
            'participant_id': moderator.id,
        }

    logger.info(f"Retrospective {result['retrospective_id']} created by user {user_id}")
    return result


def get_by_invite_code(invite_code: str) -> Optional[Retrospective]:
    """Active retrospective for an invite code, or None. Inactive sessions are not revealed."""
    code = normalize_invite_code(invite_code)
    if not code:
        return None
    retrospective = Retrospective.query.filter_by(invite_code=code).first()
    if retrospective is None or not retrospective.is_active:
        return None
    return retrospective


def get_by_id(retrospective_id: str) -> Optional[Retrospective]:
    return db.session.get(Retrospective, retrospective_id)


def get_my_retrospectives(user_id: Optional[int]) -> List[Retrospective]:
    """Retrospectives moderated by the caller, newest first."""
    if user_id is None:
        return []
    return (
        Retrospective.query
        .filter_by(moderator_id=user_id)
        .order_by(Retrospective.created_at.desc())
        .all()
    )


def get_participants(retrospective_id: str) -> List[Participant]:
    return (
        Participant.query
        .filter_by(retrospective_id=retrospective_id)
        .order_by(Participant.created_at)
        .all()
    )


def get_moderator_participant(retrospective_id: str, user_id: Optional[int]) -> Participant:
    """The moderator's own participant row, so they can post and vote too."""
    retrospective = require_moderator(get_by_id(retrospective_id), user_id)
    participant = Participant.query.filter_by(
        retrospective_id=retrospective.id,
        user_id=user_id,
        is_moderator=True,
    ).first()
    return require_found(participant, "Moderator participant")


def _find_session_participant(session_id: str, retrospective_id: str) -> Optional[Participant]:
    return Participant.query.filter_by(
        session_id=session_id, retrospective_id=retrospective_id, is_moderator=False
    ).first()


def join_as_participant(invite_code: str, session_id: str) -> str:
    """
    Join an active retrospective, reusing the participant already bound to this session.

    Args:
        invite_code: Code shared by the moderator
        session_id: Stable per-device client identifier

    Returns:
        The participant id
    """
    if not session_id:
        raise RetroError(ErrorKind.INVALID_ARGUMENT, "session_id is required")
    if session_id.startswith(MODERATOR_SESSION_PREFIX):
        logger.warning(f"Rejected join with reserved session id {session_id}")
        raise RetroError(ErrorKind.INVALID_ARGUMENT, "session_id is reserved")

    retrospective = get_by_invite_code(invite_code)
    if retrospective is None:
        raise RetroError(ErrorKind.NOT_FOUND, "Retrospective not found or inactive")

    existing = _find_session_participant(session_id, retrospective.id)
    if existing is not None:
        return existing.id

    try:
        with atomic():
            participant = Participant(
                retrospective_id=retrospective.id,
                anonymous_name=generate_anonymous_name(),
                session_id=session_id,
                is_moderator=False,
            )
            db.session.add(participant)
            db.session.flush()
            participant_id = participant.id
    except IntegrityError:
        # Lost a race with a concurrent join from the same session
        existing = _find_session_participant(session_id, retrospective.id)
        if existing is None:
            raise
        logger.warning(f"Duplicate join for session {session_id} resolved to {existing.id}")
        return existing.id

    logger.info(f"Participant {participant_id} joined retrospective {retrospective.id}")
    return participant_id


def update_settings(retrospective_id: str, votes_per_participant: int, user_id: Optional[int]) -> Retrospective:
    """Change the vote budget. Votes already cast are kept even if the budget shrinks."""
    with atomic():
        retrospective = require_moderator(get_by_id(retrospective_id), user_id)
        require_valid_budget(votes_per_participant)
        retrospective.votes_per_participant = votes_per_participant

    logger.info(f"Retrospective {retrospective_id} vote budget set to {votes_per_participant}")
    return retrospective


def end_retrospective(retrospective_id: str, user_id: Optional[int]) -> Retrospective:
    """Deactivate permanently. Cards and votes are left in place."""
    with atomic():
        retrospective = require_moderator(get_by_id(retrospective_id), user_id)
        if retrospective.is_active:
            retrospective.is_active = False
            retrospective.ended_at = datetime.utcnow()

    logger.info(f"Retrospective {retrospective_id} ended by user {user_id}")
    return retrospective
