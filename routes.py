"""
Route handlers for the Retro Board application.
"""

import logging
import os
from io import BytesIO
from flask import Blueprint, request, g, send_file, session
from flask_wtf.csrf import CSRFProtect, generate_csrf
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

import cards
import retrospectives
import votes
from auth_utils import current_user_id, load_logged_in_user, login_required, login_user
from errors import ErrorKind, RetroError
from export_import import export_to_json, export_to_text
from forms import (
    LoginForm,
    SignupForm,
    RetrospectiveForm,
    SettingsForm,
    JoinForm,
    ParticipantForm,
    CardForm,
    EditCardForm,
)
from models import db, Participant, User
from policy import require_moderator
from sockets import broadcast_change

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__)
csrf = CSRFProtect()
_default_limits = [
    limit.strip()
    for limit in os.getenv("RATELIMIT_DEFAULT", "2000 per day;500 per hour").split(";")
    if limit.strip()
]
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=_default_limits,
    storage_uri=os.getenv("RATELIMIT_STORAGE_URL", "memory://"),
)

bp.before_request(load_logged_in_user)


def _invalid(form):
    return {"error": "Invalid request", "fields": form.errors}, 400


@bp.errorhandler(RetroError)
def handle_retro_error(exc):
    """Rejected mutations become JSON errors carrying their kind."""
    return exc.to_dict(), exc.status_code


@bp.errorhandler(SQLAlchemyError)
def handle_database_error(exc):
    db.session.rollback()
    logger.error(f"Database error on {request.path}: {exc}")
    return {"error": "Database error"}, 500


# Health and readiness probes -------------------------------------------------
@bp.route("/healthz", methods=["GET"])
def healthz():
    """Lightweight health check for load balancers."""
    return {"status": "ok"}, 200


@bp.route("/readyz", methods=["GET"])
def readyz():
    """Readiness check that validates DB connectivity."""
    try:
        # Minimal DB check
        db.session.execute(text("SELECT 1"))
        return {"status": "ok"}, 200
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
        return {"status": "error", "reason": str(e)}, 503


# ============================================================================
# Auth Routes
# ============================================================================

@bp.route("/auth/csrf", methods=["GET"])
def csrf_token():
    """Hand out a CSRF token for cookie-authenticated clients."""
    return {"csrf_token": generate_csrf()}


@bp.route("/auth/signup", methods=["POST"])
@limiter.limit("5 per minute")
def signup():
    """Register a moderator account."""
    form = SignupForm()
    if not form.validate_on_submit():
        return _invalid(form)

    user = User(username=form.username.data, email=form.email.data.lower())
    user.set_password(form.password.data)
    try:
        db.session.add(user)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating user: {e}")
        return {"error": "An error occurred during registration. Please try again."}, 500

    logger.info(f"New user registered: {user.username}")
    login_user(user)
    return {"user": user.to_dict()}, 201


@bp.route("/auth/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    """Handle user login."""
    form = LoginForm()
    if not form.validate_on_submit():
        return _invalid(form)

    user = User.query.filter_by(username=form.username.data).first()
    if user is None or not user.check_password(form.password.data):
        logger.warning(f"Failed login for {form.username.data}")
        return {"error": "Invalid username or password.", "kind": ErrorKind.UNAUTHENTICATED.value}, 401

    login_user(user, remember=form.remember.data)
    return {"user": user.to_dict()}


@bp.route("/auth/logout", methods=["POST"])
def logout():
    """Handle user logout."""
    if g.user is not None:
        logger.info(f"User {g.user.username} logged out")
    session.clear()
    return {"success": True}


@bp.route("/auth/me", methods=["GET"])
def me():
    return {"user": g.user.to_dict() if g.user else None}


# ============================================================================
# Retrospective Routes
# ============================================================================

@bp.route("/api/retrospectives", methods=["POST"])
@login_required
def create_retrospective():
    """Start a retrospective moderated by the current user."""
    form = RetrospectiveForm()
    if not form.validate_on_submit():
        return _invalid(form)

    result = retrospectives.create_retrospective(
        form.name.data, form.votes_per_participant.data, current_user_id()
    )
    return result, 201


@bp.route("/api/retrospectives/mine", methods=["GET"])
def my_retrospectives():
    """Retrospectives the caller moderates; empty for anonymous callers."""
    return {
        "retrospectives": [r.to_dict() for r in retrospectives.get_my_retrospectives(current_user_id())]
    }


@bp.route("/api/retrospectives/invite/<code>", methods=["GET"])
def retrospective_by_invite(code):
    retrospective = retrospectives.get_by_invite_code(code)
    return {"retrospective": retrospective.to_dict() if retrospective else None}


@bp.route("/api/retrospectives/join", methods=["POST"])
def join_retrospective():
    """Join with an invite code; the same session always gets the same participant."""
    form = JoinForm()
    if not form.validate_on_submit():
        return _invalid(form)

    participant_id = retrospectives.join_as_participant(form.invite_code.data, form.session_id.data)
    retrospective_id = db.session.get(Participant, participant_id).retrospective_id
    broadcast_change(retrospective_id, "participant_joined", participant_id=participant_id)
    return {"participant_id": participant_id, "retrospective_id": retrospective_id}


@bp.route("/api/retrospectives/<retrospective_id>", methods=["GET"])
def retrospective_detail(retrospective_id):
    retrospective = retrospectives.get_by_id(retrospective_id)
    return {"retrospective": retrospective.to_dict() if retrospective else None}


@bp.route("/api/retrospectives/<retrospective_id>/participants", methods=["GET"])
def retrospective_participants(retrospective_id):
    return {
        "participants": [p.to_dict() for p in retrospectives.get_participants(retrospective_id)]
    }


@bp.route("/api/retrospectives/<retrospective_id>/me", methods=["GET"])
@login_required
def moderator_participant(retrospective_id):
    """The moderator's own participant, used to post and vote."""
    participant = retrospectives.get_moderator_participant(retrospective_id, current_user_id())
    return {"participant": participant.to_dict()}


@bp.route("/api/retrospectives/<retrospective_id>/settings", methods=["POST"])
@login_required
def update_settings(retrospective_id):
    form = SettingsForm()
    if not form.validate_on_submit():
        return _invalid(form)

    retrospective = retrospectives.update_settings(
        retrospective_id, form.votes_per_participant.data, current_user_id()
    )
    broadcast_change(
        retrospective_id,
        "settings_updated",
        votes_per_participant=retrospective.votes_per_participant,
    )
    return {"retrospective": retrospective.to_dict()}


@bp.route("/api/retrospectives/<retrospective_id>/end", methods=["POST"])
@login_required
def end_retrospective(retrospective_id):
    retrospective = retrospectives.end_retrospective(retrospective_id, current_user_id())
    broadcast_change(retrospective_id, "retrospective_ended")
    return {"retrospective": retrospective.to_dict()}


@bp.route("/api/retrospectives/<retrospective_id>/export", methods=["GET"])
@login_required
def export_retrospective(retrospective_id):
    """Download the results as JSON (default) or text."""
    retrospective = require_moderator(retrospectives.get_by_id(retrospective_id), current_user_id())

    if request.args.get("format", "json") == "text":
        data, mimetype, extension = export_to_text(retrospective), "text/plain", "txt"
    else:
        data, mimetype, extension = export_to_json(retrospective), "application/json", "json"

    # Create file-like object
    file = BytesIO(data.encode('utf-8'))
    file.seek(0)

    logger.info(f"Retrospective {retrospective_id} exported as {extension}")
    return send_file(
        file,
        mimetype=mimetype,
        as_attachment=True,
        download_name=f'retro-{retrospective.invite_code}.{extension}'
    )


# ============================================================================
# Card Routes
# ============================================================================

@bp.route("/api/retrospectives/<retrospective_id>/cards", methods=["GET"])
def retrospective_cards(retrospective_id):
    return {"cards": cards.get_by_retrospective(retrospective_id)}


@bp.route("/api/retrospectives/<retrospective_id>/cards", methods=["POST"])
def create_card(retrospective_id):
    form = CardForm()
    if not form.validate_on_submit():
        return _invalid(form)

    card_id = cards.create_card(
        retrospective_id, form.participant_id.data, form.category.data, form.content.data
    )
    broadcast_change(retrospective_id, "card_created", card_id=card_id)
    return {"card_id": card_id}, 201


@bp.route("/api/cards/<card_id>", methods=["PATCH"])
def update_card(card_id):
    form = EditCardForm()
    if not form.validate_on_submit():
        return _invalid(form)

    card = cards.update_card(card_id, form.participant_id.data, form.content.data)
    broadcast_change(card.retrospective_id, "card_updated", card_id=card_id)
    return {"card": card.to_dict()}


@bp.route("/api/cards/<card_id>", methods=["DELETE"])
def delete_card(card_id):
    form = ParticipantForm()
    if not form.validate_on_submit():
        return _invalid(form)

    result = cards.delete_card(card_id, form.participant_id.data)
    broadcast_change(result["retrospective_id"], "card_deleted", card_id=card_id)
    return {"success": True, "removed_votes": result["removed_votes"]}


# ============================================================================
# Vote Routes
# ============================================================================

@bp.route("/api/retrospectives/<retrospective_id>/participants/<participant_id>/votes", methods=["GET"])
def participant_votes(retrospective_id, participant_id):
    """A participant's votes plus what is left of their budget."""
    return {
        "votes": [v.to_dict() for v in votes.get_participant_votes(participant_id, retrospective_id)],
        "remaining": votes.get_remaining_votes(participant_id, retrospective_id),
    }


@bp.route("/api/cards/<card_id>/vote", methods=["POST"])
def toggle_vote(card_id):
    form = ParticipantForm()
    if not form.validate_on_submit():
        return _invalid(form)

    result = votes.toggle_vote(card_id, form.participant_id.data)
    card = cards.get_card(card_id)
    broadcast_change(
        card.retrospective_id,
        "vote_toggled",
        card_id=card_id,
        vote_count=result["vote_count"],
    )
    return result
