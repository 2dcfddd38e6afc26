from .domain import ReviewedStory, Story, UserInput
from .injected import Animal, InjectedDemo
from .llm import create_chat_model
from .personas import Persona, Personas, RoleGoalBackstory
from .write_and_review import StoryState, WriteAndReviewAgent

__all__ = [
    "UserInput",
    "Story",
    "ReviewedStory",
    "Persona",
    "RoleGoalBackstory",
    "Personas",
    "StoryState",
    "WriteAndReviewAgent",
    "Animal",
    "InjectedDemo",
    "create_chat_model",
]
