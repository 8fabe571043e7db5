from anthropic import Anthropic, APIError
from config import settings
from utils.errors import LLMServiceError
import logging

logger = logging.getLogger(__name__)


class LLMService:
    """Single-shot Claude calls for event evaluation (no streaming, no tools)"""

    def __init__(self, client: Anthropic = None, model: str = None, max_tokens: int = None):
        self.client = client or Anthropic(api_key=settings.ANTHROPIC_API_KEY)
        self.model = model or settings.EVALUATOR_MODEL
        self.max_tokens = max_tokens or settings.EVALUATOR_MAX_TOKENS

    def complete(self, system_prompt: str, user_message: str) -> str:
        """Send one request and return the text of the first content block

        Raises:
            LLMServiceError: if the API call fails or the reply has no text
        """
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
        except APIError as e:
            logger.error(f"Error calling Claude: {e}")
            raise LLMServiceError(f"Claude request failed: {e}") from e

        for block in response.content or []:
            if getattr(block, "type", None) == "text":
                return block.text.strip()

        raise LLMServiceError("Claude response contained no text block")
