"""Two-step LangGraph workflow: a storyteller writes, a critic reviews."""

from typing import TypedDict

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langgraph.graph import END, START, StateGraph
from langgraph.graph.state import CompiledStateGraph

from reviewer.engine import Agent
from reviewer.logging import get_logger
from .domain import ReviewedStory, Story, UserInput
from .personas import Persona, Personas, RoleGoalBackstory

__all__ = ["StoryState", "WriteAndReviewAgent"]

logger = get_logger()

CRAFT_STORY_PROMPT = """Craft a short story in {word_count} words or less.
The story should be engaging and imaginative.
Use the user's input as inspiration if possible.
If the user has provided a name, include it in the story.

# User input
{user_input}"""

REVIEW_STORY_PROMPT = """You will be given a short story to review.
Review it in {word_count} words or less.
Consider whether or not the story is engaging, imaginative, and well-written.
Also consider whether the story is appropriate given the original user input.

# Story
{story}

# User input that inspired the story
{user_input}"""


class StoryState(TypedDict, total=False):
    user_input: UserInput
    story: Story
    reviewed_story: ReviewedStory


class WriteAndReviewAgent:
    """Write a short story on any topic and have it reviewed by a book critic."""

    name = "WriteAndReviewAgent"
    description = "Generate a story based on user input and review it"

    def __init__(
            self,
            writer_llm: BaseChatModel,
            reviewer_llm: BaseChatModel | None = None,
            story_word_count: int = 100,
            review_word_count: int = 100,
            writer: RoleGoalBackstory = Personas.WRITER,
            reviewer: Persona = Personas.REVIEWER,
    ):
        self.writer_llm = writer_llm
        self.reviewer_llm = reviewer_llm or writer_llm
        self.story_word_count = story_word_count
        self.review_word_count = review_word_count
        self.writer = writer
        self.reviewer = reviewer

    async def craft_story(self, state: StoryState) -> dict:
        user_input = state["user_input"]
        response = await self.writer_llm.ainvoke([
            SystemMessage(content=self.writer.contribution()),
            HumanMessage(content=CRAFT_STORY_PROMPT.format(
                word_count=self.story_word_count,
                user_input=user_input.content,
            )),
        ])
        logger.debug("Story crafted")
        return {"story": Story(text=_text_of(response))}

    async def review_story(self, state: StoryState) -> dict:
        user_input = state["user_input"]
        story = state["story"]
        response = await self.reviewer_llm.ainvoke([
            SystemMessage(content=self.reviewer.contribution()),
            HumanMessage(content=REVIEW_STORY_PROMPT.format(
                word_count=self.review_word_count,
                story=story.text,
                user_input=user_input.content,
            )),
        ])
        logger.debug("Story reviewed")
        return {
            "reviewed_story": ReviewedStory(
                story=story,
                review=_text_of(response),
                reviewer=self.reviewer,
            )
        }

    def build_graph(self) -> CompiledStateGraph:
        graph = StateGraph(StoryState)
        graph.add_node("craft_story", self.craft_story)
        graph.add_node("review_story", self.review_story)
        graph.add_edge(START, "craft_story")
        graph.add_edge("craft_story", "review_story")
        graph.add_edge("review_story", END)
        return graph.compile()

    def as_agent(self) -> Agent:
        return Agent(
            name=self.name,
            description=self.description,
            graph=self.build_graph(),
            input_binding="user_input",
            output_binding="reviewed_story",
            output_type=ReviewedStory,
            build_input=lambda intent: UserInput(content=intent),
        )


def _text_of(message) -> str:
    content = message.content
    if isinstance(content, str):
        return content.strip()
    # content blocks
    return "".join(
        block.get("text", "") if isinstance(block, dict) else str(block)
        for block in content
    ).strip()
