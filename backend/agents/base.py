import logging
import asyncio
from typing import List, Dict, Optional
import httpx
from config import BYTEZ_API_KEY, BYTEZ_API_URL, OLLAMA_URL

logger = logging.getLogger(__name__)


class TextAgent:
    """Base text-generation agent: Bytez cloud, then a local Ollama server, then a mock."""

    def __init__(self, model_id: Optional[str] = "Qwen/Qwen2.5-7B-Instruct"):
        self.model_id = model_id
        self.api_key = BYTEZ_API_KEY
        self.api_url = BYTEZ_API_URL

    # ------------------------------------------------------------------
    # Primary: Bytez cloud inference
    # ------------------------------------------------------------------

    async def generate(self, messages: List[Dict[str, str]], temperature: float = 0.3, max_tokens: int = 800) -> str:
        """Generate a response. Tries Bytez cloud → Ollama local → mock."""

        if self.model_id is None:
            return self._mock_response(messages)

        # 1. Try Bytez cloud
        if self.api_key:
            result = await self._call_bytez(messages, temperature, max_tokens)
            if result is not None:
                return result
            logger.warning(f"Bytez failed for {self.model_id}, trying Ollama fallback")

        # 2. Try Ollama local fallback
        result = await self._call_ollama(messages, temperature, max_tokens)
        if result is not None:
            return result

        # 3. Mock fallback
        logger.warning(f"All inference backends failed for {self.model_id}, using mock")
        return self._mock_response(messages)

    async def _call_bytez(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int) -> Optional[str]:
        """Call the Bytez cloud API with retry on rate limits. Returns None on failure."""
        max_retries = 2
        for attempt in range(max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=120.0) as client:
                    url = f"{self.api_url}/{self.model_id}"
                    logger.info(f"Calling Bytez API: {url} (attempt {attempt + 1})")

                    response = await client.post(
                        url,
                        headers={
                            "Authorization": self.api_key,
                            "Content-Type": "application/json"
                        },
                        json={
                            "messages": messages,
                            "params": {"max_new_tokens": max_tokens, "temperature": temperature},
                        }
                    )

                    # Handle rate limiting with retry
                    if response.status_code == 429:
                        wait = 5 * (attempt + 1)
                        logger.warning(f"Bytez rate limited (429), retrying in {wait}s...")
                        if attempt < max_retries:
                            await asyncio.sleep(wait)
                            continue
                        logger.warning("Bytez rate limit exceeded after retries")
                        return None

                    if response.status_code == 200:
                        data = response.json()
                        if data.get("error") is None:
                            output = data.get("output", {})
                            if isinstance(output, dict) and output.get("content"):
                                return output["content"]
                            if isinstance(output, str) and output.strip():
                                return output
                        logger.warning(f"Bytez error or unexpected format: {str(data)[:200]}")
                    else:
                        logger.warning(f"Bytez API returned {response.status_code}: {response.text[:300]}")

            except httpx.TimeoutException:
                logger.warning(f"Bytez API timeout for {self.model_id}")
            except httpx.HTTPError as e:
                logger.error(f"Bytez API exception for {self.model_id}: {e}")

            # Don't retry on non-rate-limit errors
            break

        return None

    # ------------------------------------------------------------------
    # Fallback: Ollama local inference
    # ------------------------------------------------------------------

    async def _call_ollama(self, messages: List[Dict[str, str]], temperature: float, max_tokens: int) -> Optional[str]:
        """Try calling an Ollama local model. Returns None if Ollama is unavailable."""
        ollama_model = self._resolve_ollama_model()
        try:
            async with httpx.AsyncClient(timeout=120.0) as client:
                tags_resp = await client.get(f"{OLLAMA_URL}/api/tags", timeout=5.0)
                if tags_resp.status_code != 200:
                    return None
                installed = {m["name"] for m in tags_resp.json().get("models", [])}
                if not any(ollama_model in name for name in installed):
                    logger.info(f"Ollama model '{ollama_model}' not installed locally")
                    return None

                logger.info(f"Using Ollama local model: {ollama_model}")
                response = await client.post(
                    f"{OLLAMA_URL}/api/chat",
                    json={
                        "model": ollama_model,
                        "messages": messages,
                        "stream": False,
                        "options": {"temperature": temperature, "num_predict": max_tokens},
                    },
                )
                if response.status_code == 200:
                    content = response.json().get("message", {}).get("content", "")
                    if content:
                        return content
        except httpx.HTTPError as e:
            logger.info(f"Ollama unavailable: {e}")

        return None

    def _resolve_ollama_model(self) -> str:
        """Map a Bytez model ID to the closest Ollama model name."""
        mid = (self.model_id or "").lower()
        mappings = {
            "qwen": "qwen2.5:7b",
            "llama": "llama3.2:3b",
            "mistral": "mistral:7b",
        }
        for key, ollama_name in mappings.items():
            if key in mid:
                return ollama_name
        return "llama3.2:3b"

    # ------------------------------------------------------------------
    # Mock fallback (last resort)
    # ------------------------------------------------------------------

    def _mock_response(self, messages: List[Dict[str, str]]) -> str:
        """Subclasses return something meaningful when no provider answers."""
        return ""
