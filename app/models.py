import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Index, UniqueConstraint, event, update
from .extensions import db


def _uuid():
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


class Category(str, enum.Enum):
    EDUCATION = 'education'
    TECHNOLOGY = 'technology'
    ENVIRONMENT = 'environment'
    SOCIAL_IMPACT = 'social_impact'
    STARTUPS = 'startups'

    @property
    def label(self):
        return self.value.replace('_', ' ').title()


class Profile(db.Model):
    __tablename__ = 'profiles'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(100), nullable=True)
    created_at = db.Column(db.DateTime, default=_now)


class Problem(db.Model):
    __tablename__ = 'problems'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    # Weak back reference to the owner, used for display-name lookups only
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.Enum(Category, name='problem_category', values_callable=lambda e: [c.value for c in e]), nullable=False)
    # Counters below are maintained by the store triggers at the end of this module
    upvotes_count = db.Column(db.Integer, nullable=False, default=0)
    solutions_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=_now, index=True)

    author = db.relationship('Profile', lazy='joined', innerjoin=False)
    __table_args__ = (Index('idx_problems_category_created', 'category', 'created_at'),)


class Solution(db.Model):
    __tablename__ = 'solutions'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    problem_id = db.Column(db.String(36), db.ForeignKey('problems.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    upvotes_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=_now)

    author = db.relationship('Profile', lazy='joined', innerjoin=False)


class Upvote(db.Model):
    __tablename__ = 'upvotes'

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    solution_id = db.Column(db.String(36), db.ForeignKey('solutions.id'), nullable=False, index=True)
    # Denormalised parent of the solution, lets a problem's total be kept without a join
    problem_id = db.Column(db.String(36), db.ForeignKey('problems.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=_now)
    # One upvote per (user, solution); the only guard against double toggles
    __table_args__ = (UniqueConstraint('user_id', 'solution_id', name='ux_upvote_user_solution'),)


class TokenBlocklist(db.Model):
    """Revoked JWT ids (sign-out)"""
    __tablename__ = 'token_blocklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime, default=_now)


# --- Store triggers ---
# Counter columns are owned by the store, the same way database triggers would
# own them. They run inside the flush, so they commit or roll back with the row.

def _bump(connection, table, row_id, column, delta):
    connection.execute(
        update(table)
        .where(table.c.id == row_id)
        .values({column: getattr(table.c, column) + delta})
    )


@event.listens_for(Solution, 'after_insert')
def _solution_inserted(mapper, connection, target):
    _bump(connection, Problem.__table__, target.problem_id, 'solutions_count', 1)


@event.listens_for(Upvote, 'after_insert')
def _upvote_inserted(mapper, connection, target):
    _bump(connection, Solution.__table__, target.solution_id, 'upvotes_count', 1)
    _bump(connection, Problem.__table__, target.problem_id, 'upvotes_count', 1)


@event.listens_for(Upvote, 'after_delete')
def _upvote_deleted(mapper, connection, target):
    _bump(connection, Solution.__table__, target.solution_id, 'upvotes_count', -1)
    _bump(connection, Problem.__table__, target.problem_id, 'upvotes_count', -1)
