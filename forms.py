"""
Flask-WTF forms for the Retro Board application.

The API accepts JSON bodies; Flask-WTF binds them to these forms the same
way it binds submitted HTML forms.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, PasswordField, BooleanField, IntegerField, SelectField
from wtforms.validators import DataRequired, Length, NumberRange, ValidationError, Email, EqualTo
from config import get_config
from models import User, CardCategory
from sqlalchemy import func

config = get_config()


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class LoginForm(FlaskForm):
    """Form for user login."""

    username = StringField(
        "Username",
        validators=[DataRequired(message="Username is required.")]
    )
    password = PasswordField(
        "Password",
        validators=[DataRequired(message="Password is required.")]
    )
    remember = BooleanField("Remember me")


class SignupForm(FlaskForm):
    """Form for moderator registration."""

    username = StringField(
        "Username",
        filters=[_strip],
        validators=[
            DataRequired(message="Username is required."),
            Length(min=3, max=80, message="Username must be between 3 and 80 characters.")
        ]
    )
    email = StringField(
        "Email",
        filters=[_strip],
        validators=[
            DataRequired(message="Email is required."),
            Email(message="Invalid email address.")
        ]
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(message="Password is required."),
            Length(min=6, message="Password must be at least 6 characters.")
        ]
    )
    confirm_password = PasswordField(
        "Confirm Password",
        validators=[
            DataRequired(message="Please confirm your password."),
            EqualTo("password", message="Passwords must match.")
        ]
    )

    def validate_username(self, field):
        """Check if username is already taken."""
        if User.query.filter_by(username=field.data).first():
            raise ValidationError("Username already exists.")

    def validate_email(self, field):
        """Check if email is already registered."""
        email = field.data.strip().lower()
        if User.query.filter(func.lower(User.email) == email).first():
            raise ValidationError("Email already registered.")


class RetrospectiveForm(FlaskForm):
    """Form for starting a retrospective."""

    name = StringField(
        "Name",
        filters=[_strip],
        validators=[
            DataRequired(message="Please enter a name."),
            Length(max=config.MAX_RETRO_NAME_LENGTH),
        ]
    )
    votes_per_participant = IntegerField(
        "Votes per Participant",
        default=config.DEFAULT_VOTES_PER_PARTICIPANT,
        validators=[NumberRange(min=1, max=config.MAX_VOTES_PER_PARTICIPANT)],
    )


class SettingsForm(FlaskForm):
    """Form for changing the vote budget."""

    votes_per_participant = IntegerField(
        "Votes per Participant",
        validators=[
            DataRequired(message="votes_per_participant is required."),
            NumberRange(min=1, max=config.MAX_VOTES_PER_PARTICIPANT),
        ],
    )


class JoinForm(FlaskForm):
    """Form for joining with an invite code."""

    invite_code = StringField(
        "Invite Code",
        filters=[lambda v: v.strip().upper() if isinstance(v, str) else v],
        validators=[DataRequired(message="Enter an invite code to join."), Length(max=8)],
    )
    session_id = StringField(
        "Session",
        filters=[_strip],
        validators=[DataRequired(message="session_id is required."), Length(max=128)],
    )


class ParticipantForm(FlaskForm):
    """Payload carrying only the acting participant."""

    participant_id = StringField(
        "Participant",
        validators=[DataRequired(message="participant_id is required.")],
    )


class CardForm(ParticipantForm):
    """Form for posting a card."""

    category = SelectField(
        "Category",
        choices=[(value, value) for value in CardCategory.values()],
    )
    content = TextAreaField(
        "Content",
        filters=[_strip],
        validators=[
            DataRequired(message="Please enter some content."),
            Length(
                max=config.MAX_CARD_LENGTH,
                message=f"Content must be at most {config.MAX_CARD_LENGTH} characters.",
            ),
        ],
    )


class EditCardForm(ParticipantForm):
    """Form for editing a card's content."""

    content = TextAreaField(
        "Content",
        filters=[_strip],
        validators=[
            DataRequired(message="Please enter some content."),
            Length(
                max=config.MAX_CARD_LENGTH,
                message=f"Content must be at most {config.MAX_CARD_LENGTH} characters.",
            ),
        ],
    )
