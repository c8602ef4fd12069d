# src/commons_board/schemas/discussion.py
"""Discussion-related Pydantic schemas."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from commons_board.models import (
    Discussion,
    DonationDiscussion,
    EventDiscussion,
    IncidentDiscussion,
    PollDiscussion,
    VolunteerDiscussion,
)
from commons_board.models.discussion import ANONYMOUS, HelperStatus, Priority

# -- requests -------------------------------------------------------------------


class DiscussionCreateBase(BaseModel):
    """Fields shared by every discussion variant."""

    title: str = Field(..., min_length=1, max_length=200, description="Discussion title")
    description: str | None = Field(None, max_length=5000)
    location: str = Field(..., min_length=1, max_length=200, description="Board title")
    priority: Priority = Priority.NORMAL
    author_identity: str = Field(ANONYMOUS, min_length=1, description="Stable author key")
    image: str | None = Field(None, description="Path returned by the upload service")
    audio: str | None = Field(None, description="Path returned by the upload service")


class PollCreate(DiscussionCreateBase):
    type: Literal["Poll"]
    options: list[str] = Field(..., min_length=2)
    poll_private: bool = False

    @field_validator("options")
    @classmethod
    def _distinct_options(cls, value: list[str]) -> list[str]:
        cleaned = [option.strip() for option in value]
        if any(not option for option in cleaned):
            raise ValueError("poll options must not be blank")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("poll options must be distinct")
        return cleaned


class EventCreate(DiscussionCreateBase):
    type: Literal["Event"]
    event_date: datetime | None = None
    event_time: str | None = None


class VolunteerCreate(DiscussionCreateBase):
    type: Literal["Volunteer"]
    volunteers_needed: int | None = Field(None, ge=1)
    skills: str | None = None


class DonationCreate(DiscussionCreateBase):
    type: Literal["Donation"]
    goal_amount: float = Field(..., gt=0, allow_inf_nan=False)


class IncidentCreate(DiscussionCreateBase):
    type: Literal["Report"]


# Endpoints pick the variant with Body(discriminator="type").
DiscussionCreate = PollCreate | EventCreate | VolunteerCreate | DonationCreate | IncidentCreate


class ActorRequest(BaseModel):
    """Body carrying the identity of whoever performs an interaction."""

    actor_identity: str = Field(..., min_length=1, description="Stable identity of the actor")


class VoteRequest(ActorRequest):
    option: str = Field(..., min_length=1)


class DonateRequest(ActorRequest):
    amount: float


class HelperStatusUpdate(ActorRequest):
    status: Literal["accepted", "declined", "completed"]


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    actor_identity: str = Field(ANONYMOUS, min_length=1)


# -- responses ------------------------------------------------------------------


class CommentResponse(BaseModel):
    id: int
    discussion_id: int
    content: str
    author_identity: str
    author_display_name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DonorResponse(BaseModel):
    identity: str
    amount: float
    donated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HelperResponse(BaseModel):
    id: int
    identity: str
    status: HelperStatus
    offered_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DiscussionResponseBase(BaseModel):
    """Schema for discussion information returned by the API."""

    id: int
    type: str
    title: str
    description: str | None
    author: str
    author_identity: str
    location: str
    priority: str
    image: str | None
    audio: str | None
    likes: list[str] = Field(validation_alias=AliasChoices("liked_by", "likes"))
    like_count: int
    status: str
    is_flagged: bool
    flag_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PollResponse(DiscussionResponseBase):
    type: Literal["Poll"]
    options: list[str] = Field(validation_alias=AliasChoices("option_labels", "options"))
    votes_by_option: dict[str, int]
    vote_by_user: dict[str, str] | None
    poll_private: bool | None


class EventResponse(DiscussionResponseBase):
    type: Literal["Event"]
    event_date: datetime | None
    event_time: str | None
    attendees: list[str]
    attendee_count: int | None


class VolunteerResponse(DiscussionResponseBase):
    type: Literal["Volunteer"]
    volunteers_needed: int | None
    skills: str | None
    volunteers: list[str]
    volunteer_count: int | None


class DonationResponse(DiscussionResponseBase):
    type: Literal["Donation"]
    goal_amount: float | None
    current_amount: float | None
    donors: list[DonorResponse] = Field(validation_alias=AliasChoices("donations", "donors"))


class IncidentResponse(DiscussionResponseBase):
    type: Literal["Report"]
    help_needed: bool | None
    helper_count: int | None
    helpers: list[HelperResponse]


DiscussionResponse = Annotated[
    PollResponse | EventResponse | VolunteerResponse | DonationResponse | IncidentResponse,
    Field(discriminator="type"),
]

_RESPONSES: dict[type[Discussion], type[DiscussionResponseBase]] = {
    PollDiscussion: PollResponse,
    EventDiscussion: EventResponse,
    VolunteerDiscussion: VolunteerResponse,
    DonationDiscussion: DonationResponse,
    IncidentDiscussion: IncidentResponse,
}


def to_discussion_response(discussion: Discussion) -> DiscussionResponseBase:
    """Serialize a discussion through the schema of its concrete variant.

    Private polls keep their tallies public but hide who voted for what.
    """
    response = _RESPONSES[type(discussion)].model_validate(discussion)
    if isinstance(response, PollResponse) and response.poll_private:
        response = response.model_copy(update={"vote_by_user": None})
    return response
