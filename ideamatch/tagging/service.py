"""Tag suggestion and group naming backed by an LLM."""

from collections.abc import Sequence

from pydantic import BaseModel, Field

from ideamatch.config import TaggingSettings, get_settings
from ideamatch.exceptions import (
    ConfigurationError,
    IdeaMatchError,
    TagParseError,
    UpstreamUnavailableError,
    ValidationError,
)
from ideamatch.ideas.models import Idea
from ideamatch.llm.client import LLMClient
from ideamatch.llm.prompts import GroupNamePromptTemplate, TagExtractionPromptTemplate
from ideamatch.logging_config import get_logger
from ideamatch.observability.metrics import track_tag_extraction
from ideamatch.storage.service import IdeaStore
from ideamatch.tagging.parser import parse_tags_from_model_output

logger = get_logger(__name__)


class TagExtractor:
    """Suggests tags for ideas and names for idea groups."""

    def __init__(
        self,
        llm_client: LLMClient,
        settings: TaggingSettings | None = None,
        tag_prompt: TagExtractionPromptTemplate | None = None,
        group_prompt: GroupNamePromptTemplate | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            llm_client: Chat completion client.
            settings: Tagging configuration.
            tag_prompt: Prompt used for tag extraction.
            group_prompt: Prompt used for group naming.
        """
        self._llm_client = llm_client
        self._settings = settings or get_settings().tagging
        self._tag_prompt = tag_prompt or TagExtractionPromptTemplate()
        self._group_prompt = group_prompt or GroupNamePromptTemplate()

    def _require_configured(self) -> None:
        if not self._llm_client.is_configured:
            raise ConfigurationError(
                "LLM API key is not configured",
                details={"setting": "LLM_API_KEY"},
            )

    async def extract_tags(self, title: str, content: str) -> list[str]:
        """Ask the model for tags and parse its answer.

        Args:
            title: Idea title (may be empty if content is given).
            content: Idea body (may be empty if title is given).

        Returns:
            Parsed tag list; may be empty if the model suggested none.

        Raises:
            ValidationError: If both title and content are empty.
            ConfigurationError: If the LLM key is not configured.
            LLMError: If the upstream call fails.
            TagParseError: If the model answer holds no JSON array.
        """
        if not title.strip() and not content.strip():
            raise ValidationError("Title or content is required")
        self._require_configured()

        system_prompt, user_prompt = self._tag_prompt.build_prompt(
            title=title,
            content=content,
            max_tags=self._settings.max_tags,
        )

        try:
            result = await self._llm_client.generate_text(
                prompt=user_prompt,
                system_prompt=system_prompt,
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        except UpstreamUnavailableError:
            track_tag_extraction("upstream_error")
            raise

        logger.debug("Raw tag response", extra={"raw_response": result.content[:200]})

        try:
            tags = parse_tags_from_model_output(result.content, max_tags=self._settings.max_tags)
        except TagParseError:
            track_tag_extraction("parse_error")
            logger.warning(
                "Model output held no tag array",
                extra={"model": result.model, "truncated": result.truncated},
            )
            raise

        track_tag_extraction("success")
        logger.info(f"Extracted {len(tags)} tags", extra={"tags": tags})
        return tags

    async def suggest_group_name(self, titles: Sequence[str]) -> str:
        """Name a group formed around similar ideas.

        Args:
            titles: Titles of the grouped ideas, source idea first.

        Returns:
            The model's suggestion, or the configured default name when the
            model answers with nothing.

        Raises:
            ValidationError: If no titles are given.
            ConfigurationError: If the LLM key is not configured.
            LLMError: If the upstream call fails.
        """
        titles = [t for t in titles if t.strip()]
        if not titles:
            raise ValidationError("At least one idea title is required")
        self._require_configured()

        system_prompt, user_prompt = self._group_prompt.build_prompt(titles)
        result = await self._llm_client.generate_text(
            prompt=user_prompt,
            system_prompt=system_prompt,
            temperature=0.7,
            max_tokens=50,
        )

        name = result.content.strip().strip('"').strip()
        return name or self._settings.default_group_name


class AutoTagReport(BaseModel):
    """Outcome of a bulk auto-tagging run."""

    tagged: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Idea id to tags written",
    )
    skipped: list[str] = Field(default_factory=list, description="Ideas not attempted")
    failed: dict[str, str] = Field(
        default_factory=dict,
        description="Idea id to error message",
    )


class AutoTagger:
    """Fills in tags for public ideas that have none."""

    def __init__(
        self,
        extractor: TagExtractor,
        store: IdeaStore,
        settings: TaggingSettings | None = None,
    ) -> None:
        self._extractor = extractor
        self._store = store
        self._settings = settings or get_settings().tagging

    def _too_short(self, idea: Idea) -> bool:
        if not idea.title.strip() and not idea.content.strip():
            return True
        return not idea.title.strip() and len(idea.content) < self._settings.min_content_chars

    async def tag_untagged(self, ideas: Sequence[Idea]) -> AutoTagReport:
        """Tag every public, untagged idea in ``ideas``.

        Ideas are processed one at a time. A failure on one idea is logged
        and recorded; the run continues with the next.
        """
        report = AutoTagReport()

        for idea in ideas:
            if not idea.is_public or idea.tags:
                continue
            if self._too_short(idea):
                report.skipped.append(idea.id)
                continue

            try:
                tags = await self._extractor.extract_tags(idea.title, idea.content)
                if not tags:
                    report.skipped.append(idea.id)
                    continue
                await self._store.update_tags(idea.id, tags)
            except ConfigurationError:
                raise
            except IdeaMatchError as e:
                logger.warning(
                    f"Auto-tagging failed for idea {idea.id}: {e.message}",
                    extra={"idea_id": idea.id, "error_code": e.code.value},
                )
                report.failed[idea.id] = e.message
                continue

            report.tagged[idea.id] = tags

        logger.info(
            "Auto-tagging finished",
            extra={
                "tagged": len(report.tagged),
                "skipped": len(report.skipped),
                "failed": len(report.failed),
            },
        )
        return report
