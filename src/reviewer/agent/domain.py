from pydantic import BaseModel, Field

from .personas import Persona

__all__ = ["UserInput", "Story", "ReviewedStory"]


class UserInput(BaseModel):
    """Free-text request that inspires a story."""

    content: str


class Story(BaseModel):
    """Narrative draft produced by the writer."""

    text: str


class ReviewedStory(BaseModel):
    """A story together with the review written about it."""

    story: Story
    review: str
    reviewer: Persona = Field(description="Persona that wrote the review")

    def get_content(self) -> str:
        return (
            f"# Story\n{self.story.text}\n\n"
            f"# Review\n{self.review}\n\n"
            f"# Reviewer\n{self.reviewer.name}, {self.reviewer.persona}"
        )
