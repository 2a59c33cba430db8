from enum import Enum


class InteractionType(str, Enum):
    single_choice = "single_choice"
    multiple_choice = "multiple_choice"
    text_input = "text_input"
    image_card = "image_card"
    fake_loader = "fake_loader"
    info_screen = "info_screen"
    result_page = "result_page"
    timeline_projection = "timeline_projection"


# screens where being shown counts as answering
NON_INTERACTIVE = {
    InteractionType.fake_loader.value,
    InteractionType.info_screen.value,
    InteractionType.result_page.value,
    InteractionType.timeline_projection.value,
}


def is_interactive(interaction_type: str) -> bool:
    return interaction_type not in NON_INTERACTIVE
