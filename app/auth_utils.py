import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional
from passlib.context import CryptContext
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from .errors import AccountExistsError, AuthError, error_response, SIGN_IN_REDIRECT
from .extensions import db, jwt, query_cache
from .models import Profile, TokenBlocklist
from .repository import store_call

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash plaintext password using passlib's pbkdf2_sha256 algorithm"""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify plaintext password against stored hashed version"""
    return pwd_context.verify(plain, hashed)


@dataclass(frozen=True)
class Session:
    """The signed-in user, passed explicitly to everything that needs one"""
    user_id: str
    email: str
    display_name: Optional[str] = None

    @classmethod
    def from_profile(cls, profile):
        return cls(user_id=profile.id, email=profile.email, display_name=profile.display_name)


def sign_up(email: str, password: str, display_name: Optional[str] = None) -> tuple[str, Session]:
    """Create a profile and open a session for it. Raises AccountExistsError on a taken email"""
    email = email.strip().lower()
    if Profile.query.filter_by(email=email).first() is not None:
        raise AccountExistsError("This email is already registered. Please sign in instead.")

    with store_call('create account'):
        profile = Profile(email=email, password_hash=hash_password(password), display_name=display_name)
        db.session.add(profile)
        db.session.commit()
    logger.info("New profile %s signed up", profile.id)
    query_cache.invalidate_for('sign_up')
    return open_session(profile)


def sign_in(email: str, password: str) -> tuple[str, Session]:
    """Check credentials and open a session. Raises AuthError on a mismatch"""
    profile = Profile.query.filter_by(email=email.strip().lower()).first()
    if not profile or not verify_password(password, profile.password_hash):
        raise AuthError("Please check your email and password.", title="Invalid credentials")
    logger.info("Profile %s signed in", profile.id)
    return open_session(profile)


def open_session(profile) -> tuple[str, Session]:
    """Issue an access token for profile. Returns (token, session)"""
    token = create_access_token(identity=profile.id)
    return token, Session.from_profile(profile)


def close_session() -> None:
    """Revoke the token on the current request"""
    jti = get_jwt()['jti']
    with store_call('sign out'):
        db.session.add(TokenBlocklist(jti=jti))
        db.session.commit()


def _load_session(user_id) -> Optional[Session]:
    profile = db.session.get(Profile, user_id)
    if profile is None:
        return None
    return Session.from_profile(profile)


def current_session() -> Optional[Session]:
    """Session for the current request, or None when anonymous or the token is unusable"""
    try:
        if verify_jwt_in_request(optional=True) is None:
            return None
    except (JWTExtendedException, PyJWTError) as e:
        logger.debug("Ignoring unusable token on optional route: %s", e)
        return None
    return _load_session(get_jwt_identity())


def auth_required(fn):
    """
    Gate a route behind a valid session.

    The resolved Session is handed to the view as its first positional
    argument, so views never read the current user from ambient state.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        session = _load_session(get_jwt_identity())
        if session is None:
            raise AuthError("Account no longer exists")
        return fn(session, *args, **kwargs)

    return wrapper


# --- JWT callbacks ---
@jwt.token_in_blocklist_loader
def check_if_token_revoked(jwt_header, jwt_payload):
    jti = jwt_payload['jti']
    return db.session.query(TokenBlocklist.id).filter_by(jti=jti).scalar() is not None


@jwt.unauthorized_loader
def missing_token(reason):
    return error_response('Authentication required', reason, 401, redirect=SIGN_IN_REDIRECT)


@jwt.invalid_token_loader
def invalid_token(reason):
    return error_response('Authentication required', reason, 401, redirect=SIGN_IN_REDIRECT)


@jwt.expired_token_loader
def expired_token(jwt_header, jwt_payload):
    return error_response('Authentication required', 'Session has expired', 401, redirect=SIGN_IN_REDIRECT)


@jwt.revoked_token_loader
def revoked_token(jwt_header, jwt_payload):
    return error_response('Authentication required', 'Session has been signed out', 401, redirect=SIGN_IN_REDIRECT)
