from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage
from langchain_core.output_parsers import PydanticOutputParser
from pydantic import BaseModel, Field

__all__ = ["Animal", "InjectedDemo"]


class Animal(BaseModel):
    name: str = Field(description="Name of the animal")
    species: str = Field(description="Made-up species the animal belongs to")
    habitat: str = Field(description="Where the animal lives")


class InjectedDemo:
    """Direct use of the chat model without going through an agent."""

    def __init__(self, llm: BaseChatModel):
        self.llm = llm
        self.parser = PydanticOutputParser(pydantic_object=Animal)

    async def invent_animal(self) -> Animal:
        response = await self.llm.ainvoke([
            HumanMessage(content=(
                "Invent a unique animal that does not exist.\n\n"
                f"{self.parser.get_format_instructions()}"
            ))
        ])
        return self.parser.parse(response.content)
