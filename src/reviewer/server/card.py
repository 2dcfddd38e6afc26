from a2a.types import AgentCapabilities, AgentCard, AgentSkill

from reviewer.settings import AgentCardSettings, agent_card_settings


def build_agent_card(base_url: str, settings: AgentCardSettings | None = None) -> AgentCard:
    """Describe the story agent for A2A clients."""
    settings = settings or agent_card_settings
    skill = AgentSkill(
        id="write_and_review_story",
        name="Write and review a story",
        description="Writes a short story inspired by the request and reviews it",
        tags=["story", "writing", "review"],
        examples=["Tell me a story about caterpillars"],
    )
    return AgentCard(
        name=settings.name,
        description=settings.description,
        url=base_url,
        version=settings.version,
        default_input_modes=["text", "text/plain"],
        default_output_modes=["application/json"],
        capabilities=AgentCapabilities(streaming=True, push_notifications=False),
        skills=[skill],
    )
