"""
Taskboard Backend — User Schemas
==================================

What:  Input schemas for create/update and the public projection for output.
Who:   UserService validates form data with UserCreate / UserUpdate;
       UserRepository returns UserPublic.

Public View:
    `UserPublic.from_orm_user()` is the one place an ORM `User` becomes
    output. It copies a fixed list of fields, so `password_hash`,
    `created_at` and `updated_at` cannot appear in a response.
"""

from datetime import date
from typing import TYPE_CHECKING, Annotated, List, Optional

from pydantic import AfterValidator, Field

from taskboard.schemas.common import CamelModel
from taskboard.validation import (
    EMAIL_MAX_LENGTH,
    MESSAGES,
    NICKNAME_MAX_LENGTH,
    PASSWORD_MAX_LENGTH,
    is_non_empty,
    is_valid_birthday,
    is_valid_email,
    is_valid_phone,
)

if TYPE_CHECKING:
    from taskboard.models.user import User


def _rule(field: str, predicate):
    """Wrap a validation predicate as a Pydantic after-validator."""

    def check(value):
        if not predicate(value):
            raise ValueError(MESSAGES[field])
        return value

    return AfterValidator(check)


Nickname = Annotated[str, Field(max_length=NICKNAME_MAX_LENGTH), _rule("nickname", is_non_empty)]
Email = Annotated[str, Field(max_length=EMAIL_MAX_LENGTH), _rule("email", is_valid_email)]
Tel = Annotated[str, _rule("tel", is_valid_phone)]
Password = Annotated[str, Field(max_length=PASSWORD_MAX_LENGTH), _rule("password", is_non_empty)]
Birthday = Annotated[date, _rule("birthday", is_valid_birthday)]
ShortText = Annotated[str, Field(max_length=32)]


class UserCreate(CamelModel):
    """
    Fields accepted by POST /api/users (and by the PUT fallthrough).

    `id` is only set by the PUT fallthrough, which creates the user under
    the identifier from the URL.
    """

    id: Optional[int] = Field(default=None, ge=1)
    nickname: Nickname
    email: Email
    tel: Tel
    password: Password
    birthday: Optional[Birthday] = None
    gender: Optional[ShortText] = None
    role: Optional[ShortText] = None


class UserUpdate(CamelModel):
    """Fields accepted by PUT /api/users/{userId}; every field is optional."""

    nickname: Optional[Nickname] = None
    email: Optional[Email] = None
    tel: Optional[Tel] = None
    password: Optional[Password] = None
    birthday: Optional[Birthday] = None
    gender: Optional[ShortText] = None
    role: Optional[ShortText] = None


class UserPublic(CamelModel):
    """Sanitized user: no password hash, no timestamps."""

    id: int
    nickname: str
    email: str
    tel: str
    birthday: Optional[date] = None
    gender: Optional[str] = None
    role: Optional[str] = None
    image: Optional[str] = Field(
        default=None,
        description="Path relative to the static root; prefix with the static URL",
    )

    @classmethod
    def from_orm_user(cls, user: "User") -> "UserPublic":
        return cls(
            id=user.id,
            nickname=user.nickname,
            email=user.email,
            tel=user.tel,
            birthday=user.birthday,
            gender=user.gender,
            role=user.role,
            image=user.image,
        )


class UserPage(CamelModel):
    """One page of GET /api/users plus what the client needs to request the next."""

    items: List[UserPublic]
    total: int = Field(description="Total number of users")
    page: int = Field(description="1-based page number")
    page_size: int = Field(description="Requested page size")
