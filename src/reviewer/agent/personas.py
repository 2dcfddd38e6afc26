"""Personas giving the writer and reviewer steps their voice."""

from pydantic import BaseModel, ConfigDict

__all__ = ["Persona", "RoleGoalBackstory", "Personas"]


class RoleGoalBackstory(BaseModel):
    """Prompt contribution describing a role, what it aims for and where it comes from."""

    role: str
    goal: str
    backstory: str
    model_config = ConfigDict(frozen=True)

    def contribution(self) -> str:
        return (
            f"Role: {self.role}\n"
            f"Goal: {self.goal}\n"
            f"Backstory: {self.backstory}"
        )


class Persona(BaseModel):
    """Named persona with a voice and an objective."""

    name: str
    persona: str
    voice: str
    objective: str
    model_config = ConfigDict(frozen=True)

    def contribution(self) -> str:
        return (
            f"You are {self.name}.\n"
            f"Your persona: {self.persona}.\n"
            f"Your objective is {self.objective}.\n"
            f"Your voice: {self.voice}."
        )


class Personas:
    WRITER = RoleGoalBackstory(
        role="Creative Storyteller",
        goal="Write engaging and imaginative stories",
        backstory="Has a PhD in French literature; used to work in a circus",
    )

    REVIEWER = Persona(
        name="Media Book Review",
        persona="New York Times Book Reviewer",
        voice="Professional and insightful",
        objective="Help guide readers toward good stories",
    )
