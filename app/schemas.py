from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, computed_field, field_validator
from datetime import datetime
from typing import Annotated, Optional, List
from .models import Category
"""
Use Pydantic model schemas to validate incoming request data and to turn store
rows into typed records before they reach the routes
"""

TrimmedTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=200)]
TrimmedDescription = Annotated[str, StringConstraints(strip_whitespace=True, min_length=50, max_length=5000)]
DisplayName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]


# ---Authorization Schemas---
class SignInRequest(BaseModel):
    """Sign-in credentials"""
    email: EmailStr
    password: str = Field(..., min_length=6, description="Password must be 6+ characters")


class SignUpRequest(SignInRequest):
    """Sign-up credentials, display name optional"""
    display_name: Optional[DisplayName] = None

    @field_validator('display_name', mode='before')
    @classmethod
    def blank_display_name_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SessionUser(BaseModel):
    """The signed-in user as the client sees it - never includes the password hash"""
    id: str
    email: str
    display_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_session(cls, session):
        return cls(id=session.user_id, email=session.email, display_name=session.display_name)


class TokenResponse(BaseModel):
    """JWT token plus the session it opens"""
    access_token: str
    token_type: str = "Bearer"
    user: SessionUser


class SessionResponse(BaseModel):
    authenticated: bool
    user: Optional[SessionUser] = None


# ---Problem Schemas---
class ProblemCreateRequest(BaseModel):
    """New problem submission (POST)"""
    title: TrimmedTitle
    description: TrimmedDescription
    category: Category


class ProblemRecord(BaseModel):
    """Single problem row with its author's display name (outer join, may be None)"""
    id: str
    user_id: str
    title: str
    description: str
    category: Category
    upvotes_count: int
    solutions_count: int
    created_at: datetime
    author_name: Optional[str] = None

    @computed_field
    @property
    def category_label(self) -> str:
        return self.category.label

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            category=row.category,
            upvotes_count=row.upvotes_count or 0,
            solutions_count=row.solutions_count or 0,
            created_at=row.created_at,
            author_name=row.author.display_name if row.author else None,
        )


class ProblemListResponse(BaseModel):
    category: str
    total: int
    problems: List[ProblemRecord]
    empty_message: Optional[str] = None
    can_submit: bool


# ---Solution Schemas---
class SolutionCreateRequest(BaseModel):
    """New solution text, must not be blank"""
    content: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class SolutionRecord(BaseModel):
    id: str
    problem_id: str
    user_id: str
    content: str
    upvotes_count: int
    created_at: datetime
    author_name: Optional[str] = None

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.id,
            problem_id=row.problem_id,
            user_id=row.user_id,
            content=row.content,
            upvotes_count=row.upvotes_count or 0,
            created_at=row.created_at,
            author_name=row.author.display_name if row.author else None,
        )


class SolutionView(SolutionRecord):
    """Solution as rendered for the current session"""
    has_upvoted: bool = False
    is_top: bool = False


class SolutionListResponse(BaseModel):
    problem_id: str
    total: int
    solutions: List[SolutionView]
    can_upvote: bool
    can_submit: bool


# ---Upvote Schemas---
class UpvoteRecord(BaseModel):
    solution_id: str
    problem_id: str

    model_config = ConfigDict(from_attributes=True)


class UpvoteToggleRequest(BaseModel):
    """Upvote state the client last observed for the solution"""
    has_upvoted: bool = False


class UpvoteToggleResponse(BaseModel):
    solution_id: str
    has_upvoted: bool


# ---Home Schemas---
class StatsRecord(BaseModel):
    problems: int
    solutions: int
    upvotes: int
    members: int


class HomeResponse(BaseModel):
    authenticated: bool
    featured: List[ProblemRecord]
    stats: StatsRecord
