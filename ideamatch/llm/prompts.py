"""Prompt templates for tag extraction and group naming."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any


class PromptTemplate(ABC):
    """Abstract base class for prompt templates."""

    system_prompt: str
    user_template: str

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the template with provided variables.

        Args:
            **kwargs: Template variables.

        Returns:
            Formatted prompt string.
        """
        ...


class TagExtractionPromptTemplate(PromptTemplate):
    """Asks the model for a bare JSON array of tags."""

    DEFAULT_SYSTEM_PROMPT = (
        "You are a keyword extraction expert. You extract short, meaningful tags "
        "from text. Reply with a JSON array only, nothing else."
    )

    DEFAULT_USER_TEMPLATE = """Extract {min_tags}-{max_tags} keyword tags from this idea.

Title: {title}
Content: {content}

Rules:
1. Reply ONLY with a JSON array, for example ["tag1", "tag2", "tag3"]
2. Tags are short and capture the core themes
3. Use the same language as the idea
4. No other text

Example output:
["artificial intelligence", "smart home", "IoT"]"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        """Initialize the template.

        Args:
            system_prompt: Custom system prompt.
            user_template: Custom user message template.
        """
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the user template.

        Args:
            **kwargs: Must include 'title', 'content', 'min_tags', 'max_tags'.
        """
        return self.user_template.format(**kwargs)

    def build_prompt(self, title: str, content: str, max_tags: int) -> tuple[str, str]:
        """Build system and user prompts for one idea.

        Missing title or content is rendered as "(none)".
        """
        user_prompt = self.format(
            title=title or "(none)",
            content=content or "(none)",
            min_tags=min(3, max_tags),
            max_tags=max_tags,
        )
        return self.system_prompt, user_prompt


class GroupNamePromptTemplate(PromptTemplate):
    """Asks the model to name a group formed around similar ideas."""

    DEFAULT_SYSTEM_PROMPT = (
        "You are a creative naming expert who gives idea teams short, "
        "catchy names."
    )

    DEFAULT_USER_TEMPLATE = """Suggest a short, creative name for a group built around these similar ideas:

{ideas}

Rules:
1. Reply with the group name only
2. Two to five words
3. Capture the shared theme
4. Use the same language as the ideas"""

    # Only the first few titles are shown to the model
    MAX_IDEAS = 3

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the user template; requires 'ideas'."""
        return self.user_template.format(**kwargs)

    def format_ideas(self, titles: Sequence[str]) -> str:
        """Render idea titles as a numbered list."""
        return "\n".join(
            f"Idea {i}: {title}" for i, title in enumerate(titles[: self.MAX_IDEAS], start=1)
        )

    def build_prompt(self, titles: Sequence[str]) -> tuple[str, str]:
        """Build system and user prompts from idea titles."""
        return self.system_prompt, self.format(ideas=self.format_ideas(titles))
