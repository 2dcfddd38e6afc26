from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .events import AgenticEventListener

__all__ = ["ProcessOptions"]


class ProcessOptions(BaseModel):
    """Options applied to a single agent process."""

    listeners: list[Any] = Field(
        default_factory=list,
        description="Listeners receiving the process events"
    )
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def with_listener(self, listener: AgenticEventListener) -> "ProcessOptions":
        """Return a copy with ``listener`` registered."""
        return self.model_copy(update={"listeners": _unique([*self.listeners, listener])})

    def merged_with(self, other: Optional["ProcessOptions"]) -> "ProcessOptions":
        """Combine these (default) options with per-call options.

        A listener registered in both is only notified once.
        """
        if other is None:
            return self
        return self.model_copy(update={"listeners": _unique([*self.listeners, *other.listeners])})


def _unique(listeners: list[AgenticEventListener]) -> list[AgenticEventListener]:
    seen: set[int] = set()
    result = []
    for listener in listeners:
        if id(listener) in seen:
            continue
        seen.add(id(listener))
        result.append(listener)
    return result
