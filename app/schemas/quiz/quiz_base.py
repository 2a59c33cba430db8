import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from app.services.cloudinary import is_valid_cloudinary_url
from app.services.interaction_types import InteractionType, NON_INTERACTIVE

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"
HOSTNAME_PATTERN = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)(\.(?!-)[a-z0-9-]{1,63}(?<!-))+$")
TIMELINE_DIRECTIONS = {"ascendent", "descendent"}


def slugify_value(text: str) -> str:
    value = re.sub(r"[^a-z0-9_]", "", text.strip().lower().replace(" ", "_"))
    return value or "option"


def normalize_domain(domain: Optional[str]) -> Optional[str]:
    if domain is None:
        return None
    value = domain.strip().lower()
    for scheme in ("https://", "http://"):
        if value.startswith(scheme):
            value = value[len(scheme):]
    value = value.rstrip("/")
    return value or None


def _check_image_url(url: Optional[str]) -> Optional[str]:
    if url and not is_valid_cloudinary_url(url):
        raise ValueError("Image URL must be a Cloudinary upload URL")
    return url or None


class AnswerOptionIn(BaseModel):
    id: Optional[int] = None
    option_text: str = Field(..., min_length=1, max_length=500)
    # left empty on an existing option, the stored value is kept
    associated_value: Optional[str] = Field(None, max_length=100)
    option_image_url: Optional[str] = None

    check_option_image = field_validator("option_image_url")(_check_image_url)


def continue_option() -> AnswerOptionIn:
    return AnswerOptionIn(option_text="Continue", associated_value="continue")


class TimelineProjectionConfig(BaseModel):
    direction: str
    months_count: int = Field(..., ge=1, le=60)

    @field_validator("direction")
    @classmethod
    def direction_known(cls, v):
        if v not in TIMELINE_DIRECTIONS:
            raise ValueError("direction must be 'ascendent' or 'descendent'")
        return v

    class Config:
        extra = "allow"


class QuestionIn(BaseModel):
    id: Optional[int] = None
    sequence_order: int = Field(..., ge=0)
    question_text: Optional[str] = None
    interaction_type: InteractionType
    image_url: Optional[str] = None
    instructions_text: Optional[str] = None
    loader_text: Optional[str] = None
    popup_question: Optional[str] = None
    loader_bars: Optional[List[Any]] = None
    result_page_config: Optional[Dict[str, Any]] = None
    timeline_projection_config: Optional[TimelineProjectionConfig] = None
    educational_box_title: Optional[str] = None
    educational_box_text: Optional[str] = None
    options: List[AnswerOptionIn] = []

    check_image = field_validator("image_url")(_check_image_url)

    @model_validator(mode="after")
    def check_question(self):
        if self.interaction_type != InteractionType.info_screen and not (self.question_text or "").strip():
            raise ValueError("question_text is required")

        if self.interaction_type == InteractionType.timeline_projection and self.timeline_projection_config is None:
            raise ValueError("timeline_projection questions need a timeline_projection_config")

        if not self.options:
            if self.interaction_type.value not in NON_INTERACTIVE:
                raise ValueError("Interactive questions need at least one option")
            # an existing screen keeps whatever option it already has
            if self.id is None:
                self.options = [continue_option()]

        for option in self.options:
            if option.id is None and not option.associated_value:
                option.associated_value = slugify_value(option.option_text)
        return self


class QuizBase(BaseModel):
    quiz_name: str = Field(..., min_length=1, max_length=255)
    product_page_url: str = Field(..., min_length=1, max_length=500)
    is_active: bool = True
    brand_logo_url: Optional[str] = None
    color_primary: str = Field(..., pattern=HEX_COLOR)
    color_secondary: str = Field(..., pattern=HEX_COLOR)
    color_text_default: str = Field(..., pattern=HEX_COLOR)
    color_text_hover: str = Field(..., pattern=HEX_COLOR)
    custom_domain: Optional[str] = None
    questions: List[QuestionIn] = Field(..., min_length=1)

    check_logo = field_validator("brand_logo_url")(_check_image_url)

    @field_validator("custom_domain")
    @classmethod
    def valid_domain(cls, v):
        domain = normalize_domain(v)
        if domain and not HOSTNAME_PATTERN.match(domain):
            raise ValueError("custom_domain must be a host name such as quiz.example.com")
        return domain

    @model_validator(mode="after")
    def unique_sequence(self):
        orders = [q.sequence_order for q in self.questions]
        if len(orders) != len(set(orders)):
            raise ValueError("Duplicate sequence_order in questions")
        return self


class QuizCreate(QuizBase):
    pass


class QuizUpdate(QuizBase):
    pass


class AnswerOptionOut(BaseModel):
    id: int
    option_text: str
    associated_value: str
    option_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class QuestionOut(BaseModel):
    id: int
    sequence_order: int
    question_text: Optional[str] = None
    interaction_type: str
    image_url: Optional[str] = None
    instructions_text: Optional[str] = None
    loader_text: Optional[str] = None
    popup_question: Optional[str] = None
    loader_bars: Optional[List[Any]] = None
    result_page_config: Optional[Dict[str, Any]] = None
    timeline_projection_config: Optional[Dict[str, Any]] = None
    educational_box_title: Optional[str] = None
    educational_box_text: Optional[str] = None
    options: List[AnswerOptionOut] = []

    class Config:
        from_attributes = True


class QuizOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    shop_id: Optional[int] = None
    quiz_name: str
    product_page_url: Optional[str] = None
    is_active: bool
    brand_logo_url: Optional[str] = None
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    color_text_default: Optional[str] = None
    color_text_hover: Optional[str] = None
    quiz_start_url: Optional[str] = None
    custom_domain: Optional[str] = None
    shopify_page_id: Optional[int] = None
    shopify_page_handle: Optional[str] = None
    created_at: datetime
    questions: List[QuestionOut] = []

    class Config:
        from_attributes = True


class QuizSummary(BaseModel):
    quiz_id: int
    quiz_name: str
    product_page_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    user_id: Optional[int] = None
    total_starts: int
    total_completions: int
    completion_rate: float
    active_questions: int
