import re

from app.core.security import create_access_token

CLOUDINARY_IMAGE = "https://res.cloudinary.com/demo-cloud/image/upload/v1/quiz-funnel/pic.png"


def token_from(message: dict) -> str:
    return re.search(r"token=([0-9a-f]+)", message["body"]).group(1)


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def option(text, **extra):
    return {"option_text": text, **extra}


def question(order, text=None, interaction_type="single_choice", options=None, **extra):
    payload = {
        "sequence_order": order,
        "question_text": text if text is not None else f"Question {order}",
        "interaction_type": interaction_type,
        "options": options if options is not None else [option("Yes"), option("No")],
    }
    payload.update(extra)
    return payload


def quiz_payload(questions=None, **extra):
    payload = {
        "quiz_name": "Skin care finder",
        "product_page_url": "https://shop.example.com/products/serum",
        "brand_logo_url": CLOUDINARY_IMAGE,
        "color_primary": "#112233",
        "color_secondary": "#445566",
        "color_text_default": "#000000",
        "color_text_hover": "#FFFFFF",
        "questions": questions if questions is not None else [question(1), question(2), question(3)],
    }
    payload.update(extra)
    return payload
