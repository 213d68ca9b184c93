"""Pydantic schemas for request validation."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Type, TypeVar

from flask import request
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, StringConstraints, ValidationError

from backend.errors import ApiError

VALIDATION_MESSAGE = "Validation failed, entered data is incorrect"


def _lower_email(value: str) -> str:
    return value.strip().lower()


Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]
NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Min3 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3)]
Min5 = Annotated[str, StringConstraints(strip_whitespace=True, min_length=5)]
Email = Annotated[EmailStr, AfterValidator(_lower_email)]
LoginEmail = Annotated[str, AfterValidator(_lower_email)]

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Auth / users ────────────────────────────────────────────────────────────


class SignupIn(_Payload):
    email: Email
    password: Min5
    name: NonEmpty


class LoginIn(_Payload):
    email: LoginEmail
    password: str


class StatusIn(_Payload):
    status: NonEmpty


class UserCreateIn(_Payload):
    email: Email
    password: Min5
    name: NonEmpty
    is_admin: bool = Field(default=False, alias="isAdmin")


class UserUpdateIn(_Payload):
    email: Optional[Email] = None
    password: Optional[Min5] = None
    name: Optional[NonEmpty] = None
    status: Optional[NonEmpty] = None
    is_admin: Optional[bool] = Field(default=None, alias="isAdmin")
    image: Optional[str] = None


# ── Shop ────────────────────────────────────────────────────────────────────


class ProductIn(_Payload):
    name: Min5
    price: float = Field(ge=0)
    description: Min5
    image: Optional[str] = None


class CartItemIn(_Payload):
    product_id: int = Field(alias="productId")
    quantity: int = Field(ge=1)


class PostIn(_Payload):
    title: Min5
    content: Min5
    image: Optional[str] = None


# ── Q&A ─────────────────────────────────────────────────────────────────────


class TagIn(_Payload):
    name: NonEmpty
    description: Trimmed = ""


class QuestionIn(_Payload):
    title: Min3
    content: Min3
    tags: list[int] = Field(default_factory=list)


class AnswerIn(_Payload):
    content: Min3
    question_id: int = Field(alias="questionId")


class AnswerUpdateIn(_Payload):
    content: Min3


class VoteIn(_Payload):
    vote: Literal["up", "down"]


# ── Social ──────────────────────────────────────────────────────────────────


class TweetIn(_Payload):
    text: NonEmpty
    image: Optional[str] = None


class CommentIn(_Payload):
    tweet: int
    text: NonEmpty


class CommentUpdateIn(_Payload):
    text: NonEmpty


def _request_data() -> dict[str, Any]:
    """JSON body when present, otherwise multipart/urlencoded form fields."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    details = []
    for err in exc.errors(include_url=False):
        value = err.get("input")
        if isinstance(value, dict):
            value = None
        details.append(
            {
                "type": "field",
                "msg": err["msg"],
                "path": ".".join(str(part) for part in err["loc"]),
                "value": value,
            }
        )
    return details


def parse_payload(model: Type[ModelT], data: dict[str, Any] | None = None) -> ModelT:
    """Validate the current request body against ``model`` or raise a 422."""
    try:
        return model.model_validate(_request_data() if data is None else data)
    except ValidationError as exc:
        raise ApiError(422, VALIDATION_MESSAGE, validation_details(exc)) from exc
