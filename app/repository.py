"""
Data-access layer.

Reads return typed records from app.schemas and go through the query cache
under explicit keys. Mutations take the caller's Session explicitly, write
to the store and then invalidate the keys listed for them in
app.cache.INVALIDATION_MAP. Store failures surface as RemoteError.
"""
import logging
from contextlib import contextmanager
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .errors import AuthError, NotFoundError, RemoteError, ValidationError
from .extensions import db, query_cache
from .models import Category, Problem, Profile, Solution, Upvote
from .schemas import (
    ProblemRecord, SolutionRecord, StatsRecord, UpvoteRecord, UpvoteToggleResponse
)

logger = logging.getLogger(__name__)

ALL_CATEGORIES = 'all'
CATEGORY_VALUES = tuple(c.value for c in Category)


@contextmanager
def store_call(action):
    """Roll back and re-raise store failures as RemoteError"""
    try:
        yield
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Store call failed while trying to %s", action)
        raise RemoteError(f"Failed to {action}: {getattr(e, 'orig', None) or e}") from e


def _require_session(session):
    if session is None:
        raise AuthError("Must be logged in")


def _normalize_category(category):
    if category is None or category == '' or category == ALL_CATEGORIES:
        return ALL_CATEGORIES
    if category not in CATEGORY_VALUES:
        raise ValidationError({'category': f"Unknown category: {category}"})
    return category


# ---Reads---
def list_problems(category=None):
    """Problems newest first, optionally restricted to one category"""
    category = _normalize_category(category)

    def load():
        with store_call('load problems'):
            query = Problem.query.order_by(Problem.created_at.desc(), Problem.id)
            if category != ALL_CATEGORIES:
                query = query.filter(Problem.category == Category(category))
            return [ProblemRecord.from_row(row) for row in query.all()]

    return query_cache.fetch(('problems', category), load)


def list_featured_problems(limit=3):
    """Most upvoted problems, for the home page"""
    def load():
        with store_call('load featured problems'):
            rows = (
                Problem.query
                .order_by(Problem.upvotes_count.desc(), Problem.created_at.desc())
                .limit(limit)
                .all()
            )
            return [ProblemRecord.from_row(row) for row in rows]

    return query_cache.fetch(('featured-problems', limit), load)


def get_problem(problem_id):
    """One problem with its author's display name, or None if there is no such problem"""
    def load():
        with store_call('load problem'):
            row = db.session.get(Problem, problem_id)
            return ProblemRecord.from_row(row) if row is not None else None

    return query_cache.fetch(('problem', problem_id), load)


def list_solutions(problem_id):
    """
    Solutions for a problem, most upvoted first.

    Equal upvote counts are ordered oldest first, then by id, so the order
    never depends on how the store happens to lay out rows.
    """
    def load():
        with store_call('load solutions'):
            rows = (
                Solution.query
                .filter_by(problem_id=problem_id)
                .order_by(Solution.upvotes_count.desc(), Solution.created_at.asc(), Solution.id)
                .all()
            )
            return [SolutionRecord.from_row(row) for row in rows]

    return query_cache.fetch(('solutions', problem_id), load)


def list_user_upvotes(session):
    """The session user's upvotes; empty for anonymous callers"""
    if session is None:
        return []

    def load():
        with store_call('load upvotes'):
            rows = Upvote.query.filter_by(user_id=session.user_id).order_by(Upvote.created_at).all()
            return [UpvoteRecord.model_validate(row) for row in rows]

    return query_cache.fetch(('user-upvotes', session.user_id), load)


def has_upvoted(upvotes, solution_id) -> bool:
    return any(u.solution_id == solution_id for u in upvotes)


def community_stats():
    def load():
        with store_call('load community stats'):
            return StatsRecord(
                problems=db.session.query(func.count(Problem.id)).scalar() or 0,
                solutions=db.session.query(func.count(Solution.id)).scalar() or 0,
                upvotes=db.session.query(func.count(Upvote.id)).scalar() or 0,
                members=db.session.query(func.count(Profile.id)).scalar() or 0,
            )

    return query_cache.fetch(('stats',), load)


# ---Mutations---
def insert_problem(session, payload):
    """Store a validated ProblemCreateRequest as a new problem owned by the session user"""
    _require_session(session)
    with store_call('post problem'):
        problem = Problem(
            user_id=session.user_id,
            title=payload.title.strip(),
            description=payload.description.strip(),
            category=Category(payload.category),
        )
        db.session.add(problem)
        db.session.commit()
        record = ProblemRecord.from_row(problem)

    logger.info("Problem %s posted by %s in %s", record.id, session.user_id, record.category.value)
    query_cache.invalidate_for('insert_problem', problem_id=record.id)
    return record


def insert_solution(session, problem_id, content):
    _require_session(session)
    with store_call('submit solution'):
        if db.session.get(Problem, problem_id) is None:
            raise NotFoundError("Problem not found")
        solution = Solution(problem_id=problem_id, user_id=session.user_id, content=content.strip())
        db.session.add(solution)
        db.session.commit()
        record = SolutionRecord.from_row(solution)

    logger.info("Solution %s submitted to problem %s by %s", record.id, problem_id, session.user_id)
    query_cache.invalidate_for('insert_solution', problem_id=problem_id)
    return record


def toggle_upvote(session, solution_id, has_upvoted):
    """
    Flip the session user's upvote on a solution.

    has_upvoted is the state the caller last observed: False inserts an
    upvote, True deletes it. The store's unique (user, solution) constraint
    is the only guard against two sessions toggling at once; a rejected
    duplicate insert comes back as RemoteError.
    """
    _require_session(session)
    with store_call('update upvote'):
        solution = db.session.get(Solution, solution_id)
        if solution is None:
            raise NotFoundError("Solution not found")
        problem_id = solution.problem_id

        if has_upvoted:
            upvote = Upvote.query.filter_by(user_id=session.user_id, solution_id=solution_id).first()
            if upvote is not None:
                db.session.delete(upvote)
        else:
            db.session.add(Upvote(user_id=session.user_id, solution_id=solution_id, problem_id=problem_id))
        db.session.commit()

    logger.info("Upvote on solution %s %s by %s", solution_id,
                "removed" if has_upvoted else "added", session.user_id)
    query_cache.invalidate_for('toggle_upvote', problem_id=problem_id, user_id=session.user_id)
    return UpvoteToggleResponse(solution_id=solution_id, has_upvoted=not has_upvoted)
