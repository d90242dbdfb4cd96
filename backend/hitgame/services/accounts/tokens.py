from flask_jwt_extended import create_access_token, decode_token, get_jwt_identity
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError
from hitgame.errors import ExpiredOrInvalidToken


def issue_token(user, expires_delta=None) -> str:
    """Sign an access token for ``user``.

    The subject is the user id as a string; expiry defaults to
    ``JWT_ACCESS_TOKEN_EXPIRES`` (24 hours).
    """
    if expires_delta is None:
        return create_access_token(identity=str(user.id))
    return create_access_token(identity=str(user.id), expires_delta=expires_delta)


def verify_token(token) -> int:
    if not token or not isinstance(token, str):
        raise ExpiredOrInvalidToken()
    try:
        claims = decode_token(token)
        return int(claims['sub'])
    except (PyJWTError, JWTExtendedException, KeyError, TypeError, ValueError):
        raise ExpiredOrInvalidToken()


def current_user_id() -> int:
    """User id of the bearer token on the current request (inside ``@jwt_required``)."""
    try:
        return int(get_jwt_identity())
    except (TypeError, ValueError):
        raise ExpiredOrInvalidToken()
