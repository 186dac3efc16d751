"""
Authentication helpers: caller identity and the login-required guard.
"""

from functools import wraps
from typing import Optional
import logging

from flask import g, session

from models import db, User

logger = logging.getLogger(__name__)


def load_logged_in_user() -> None:
    """Load the logged-in user from session into ``g.user``."""
    user_id = session.get('user_id')
    if user_id is None:
        g.user = None
        return
    g.user = db.session.get(User, user_id)
    if g.user is None:
        logger.warning("Session references missing user %s; clearing", user_id)
        session.clear()


def current_user_id() -> Optional[int]:
    """Caller identity for the rule layer, or None when anonymous."""
    user = getattr(g, 'user', None)
    return user.id if user is not None else None


def login_user(user: User, remember: bool = False) -> None:
    session.clear()
    session['user_id'] = user.id
    session.permanent = bool(remember)
    logger.info("User %s logged in", user.username)


def login_required(f):
    """Decorator to require login for a route; answers 401 JSON otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if getattr(g, 'user', None) is None:
            return {"error": "You must be logged in.", "kind": "unauthenticated"}, 401
        return f(*args, **kwargs)
    return decorated_function
