from decimal import Decimal
from flask import current_app
from sqlalchemy.exc import IntegrityError
from hitgame import db
from hitgame.errors import DuplicateEmail, InvalidCredentials, InvalidInput, NotFound
from hitgame.models import User


def normalize_email(email):
    if not isinstance(email, str):
        return None
    email = email.strip().lower()
    local, sep, domain = email.partition('@')
    if not (local and sep and domain) or len(email) > 255:
        return None
    return email


def register(email, password) -> User:
    """Create a user with a salted bcrypt hash and the starting wallet balance."""
    normalized = normalize_email(email)
    if not normalized:
        raise InvalidInput('A valid email is required')
    if not isinstance(password, str) or not password:
        raise InvalidInput('Password is required')

    if User.query.filter_by(email=normalized).first():
        raise DuplicateEmail()

    starting_balance = Decimal(current_app.config.get('STARTING_BALANCE', Decimal('100.00')))
    user = User(email=normalized, wallet_balance=starting_balance)
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.session.rollback()
        raise DuplicateEmail()

    current_app.logger.info(f"[register] user={user.id}")
    return user


def authenticate(email, password) -> User:
    normalized = normalize_email(email)
    user = User.query.filter_by(email=normalized).first() if normalized else None
    if not user or not isinstance(password, str) or not user.check_password(password):
        current_app.logger.info("[login-failed] bad email or password")
        raise InvalidCredentials()
    current_app.logger.info(f"[login] user={user.id}")
    return user


def get_user(user_id) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user
