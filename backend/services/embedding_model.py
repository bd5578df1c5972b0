"""Query embeddings through the Hugging Face Inference API."""
import time
import logging
from typing import List, Optional
import httpx
from config import HUGGINGFACE_API_KEY, EMBEDDING_MODEL

logger = logging.getLogger(__name__)

# Statuses worth retrying: model cold start and gateway hiccups
RETRYABLE_STATUS = {502, 503, 504}


class EmbeddingModel:
    """Embeds query and document text for vector search."""

    def __init__(
        self,
        api_key: Optional[str] = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        max_retries: int = 4,
        initial_delay: float = 2.0,
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None
    ):
        """
        Args:
            api_key: Hugging Face API key
            model_name: Sentence-transformers model identifier
            max_retries: Attempts before giving up on retryable failures
            initial_delay: First backoff delay in seconds, doubled per retry
            timeout: Request timeout in seconds
            http_client: Optional preconfigured httpx client (used by tests)
        """
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        self.model_name = model_name
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.api_url = f"https://api-inference.huggingface.co/models/{model_name}"
        self._client = http_client or httpx.Client(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"}
        )
        logger.info(f"Initialized EmbeddingModel with model: {model_name}")

    def embed_text(self, text: str) -> List[float]:
        """Embed a single non-empty string."""
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        return self._embed([text])[0]

    def embed_batch(self, texts: List[str]) -> List[List[float]]:
        """
        Embed several strings in one request.

        Empty strings are rejected up front so the output stays aligned with the input.
        """
        if not texts:
            raise ValueError("Texts list cannot be empty")
        if any(not t or not t.strip() for t in texts):
            raise ValueError("Texts in a batch cannot be empty")
        return self._embed(texts)

    def _embed(self, texts: List[str]) -> List[List[float]]:
        payload = {"inputs": texts, "options": {"wait_for_model": True}}
        delay = self.initial_delay
        last_error = "no attempt made"

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self._client.post(self.api_url, json=payload)
            except httpx.TimeoutException:
                last_error = "request timed out"
            except httpx.RequestError as e:
                last_error = f"network error: {e}"
            else:
                if response.status_code == 200:
                    logger.debug(f"Embedded {len(texts)} texts on attempt {attempt}")
                    return response.json()
                if response.status_code == 401:
                    raise RuntimeError("Invalid Hugging Face API key")
                if response.status_code == 429:
                    raise RuntimeError("Hugging Face rate limit exceeded")
                if response.status_code not in RETRYABLE_STATUS:
                    raise RuntimeError(
                        f"Embedding request failed with status {response.status_code}: {response.text}"
                    )
                last_error = f"status {response.status_code}"

            logger.warning(f"Embedding attempt {attempt}/{self.max_retries} failed: {last_error}")
            if attempt < self.max_retries:
                time.sleep(delay)
                delay = min(delay * 2, 30.0)

        raise RuntimeError(
            f"Failed to generate embeddings after {self.max_retries} attempts. Last error: {last_error}"
        )
