from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ContentOption(BaseModel):
    option_id: int
    option_text: str
    associated_value: str
    option_image_url: Optional[str] = None


class ContentQuestion(BaseModel):
    question_id: int
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
    options: List[ContentOption] = []


class QuizContent(BaseModel):
    quiz_id: int
    quiz_name: str
    product_page_url: Optional[str] = None
    brand_logo_url: Optional[str] = None
    color_primary: Optional[str] = None
    color_secondary: Optional[str] = None
    color_text_default: Optional[str] = None
    color_text_hover: Optional[str] = None
    questions: List[ContentQuestion] = []


class DomainLookup(BaseModel):
    quiz_id: int
