"""
Tab Grouper - Grouping Pipeline

Runs one grouping request through every stage: validate the tabs, build
the prompt, call the model with retries, extract its text, recover the
JSON and check its shape.
"""

import logging
from typing import Any, Optional

from config import LLMSettings
from .errors import GroupingError, PipelineStage
from .extraction import extract_text, recover_json
from .invoker import RetryingInvoker, Sleep
from .llm_client import CompletionClient
from .prompt import build_request
from .validators import validate_groups, validate_tabs

logger = logging.getLogger(__name__)


class TabGroupingPipeline:
    """Request-scoped grouping over an injected completion client."""

    def __init__(
        self,
        client: CompletionClient,
        model_name: str,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        timeout: Optional[float] = 60.0,
        sleep: Optional[Sleep] = None,
    ):
        self.model_name = model_name
        invoker_kwargs = {} if sleep is None else {"sleep": sleep}
        self.invoker = RetryingInvoker(
            client,
            max_attempts=max_attempts,
            base_delay=base_delay,
            timeout=timeout,
            **invoker_kwargs,
        )

    @classmethod
    def from_settings(cls, client: CompletionClient, settings: LLMSettings, sleep: Optional[Sleep] = None):
        return cls(
            client,
            model_name=settings.model_name,
            max_attempts=settings.max_retries,
            base_delay=settings.retry_delay,
            timeout=settings.timeout,
            sleep=sleep,
        )

    async def run(self, body: Any) -> dict:
        """
        Group the tabs in a raw request body.

        Returns:
            Mapping of category name to list of tab ids, as sent by the model

        Raises:
            GroupingError: The subclass names the stage that failed
        """
        stage = PipelineStage.VALIDATING
        try:
            tabs = validate_tabs(body)
            logger.info(f"Received {len(tabs)} tabs to group")
            request = build_request(tabs, self.model_name)

            stage = PipelineStage.INVOKING
            response = await self.invoker.invoke(request)

            stage = PipelineStage.EXTRACTING
            text = extract_text(response)
            logger.info(f"Extracted text: {text[:200]}...")

            stage = PipelineStage.RECOVERING
            value = recover_json(text)

            stage = PipelineStage.VALIDATING_SHAPE
            groups = validate_groups(value)
        except GroupingError as e:
            logger.error(f"Grouping failed while {stage.value}: {e.message}")
            raise

        logger.info(f"Successfully parsed groups: {list(groups)}")
        return groups
