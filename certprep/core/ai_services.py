# certprep/core/ai_services.py
import asyncio
import concurrent.futures
import logging
import time
from typing import Dict, Any

import groq
import openai
from groq import Groq
from openai import AzureOpenAI

from .config import config, Config
from .errors import CompletionError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

TIMEOUT_ERRORS = (openai.APITimeoutError, groq.APITimeoutError)
PROVIDER_ERRORS = (openai.APIError, groq.APIError)


class AIService:
    """Chat completion client for the configured provider (Azure OpenAI or Groq)"""

    def __init__(self, settings: Config = None, client=None):
        self.settings = settings or config
        self.provider = self.settings.COMPLETION_PROVIDER
        self.model = self.settings.COMPLETION_MODEL
        self.client = client if client is not None else self._init_client()
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=4)

    def _init_client(self):
        """Build the provider SDK client; one call per request, no SDK retries"""
        if self.provider == "groq":
            if not self.settings.GROQ_API_KEY:
                raise CompletionError("GROQ_API_KEY not provided")
            client = Groq(
                api_key=self.settings.GROQ_API_KEY,
                timeout=self.settings.COMPLETION_TIMEOUT,
                max_retries=0
            )
        else:
            if not self.settings.AZURE_OPENAI_ENDPOINT or not self.settings.AZURE_OPENAI_API_KEY:
                raise CompletionError("AZURE_OPENAI_ENDPOINT and AZURE_OPENAI_API_KEY are required")
            client = AzureOpenAI(
                azure_endpoint=self.settings.AZURE_OPENAI_ENDPOINT,
                api_key=self.settings.AZURE_OPENAI_API_KEY,
                api_version=self.settings.AZURE_OPENAI_API_VERSION,
                timeout=self.settings.COMPLETION_TIMEOUT,
                max_retries=0
            )

        logger.info(f"✅ {self.provider} completion client initialized (model: {self.model})")
        return client

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run one chat completion off the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            self._sync_completion_call,
            system_prompt,
            user_prompt
        )

    def _sync_completion_call(self, system_prompt: str, user_prompt: str) -> str:
        """Synchronous provider call for the thread pool"""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        started = time.time()

        try:
            if self.provider == "groq":
                completion = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.settings.COMPLETION_TEMPERATURE,
                    max_completion_tokens=self.settings.COMPLETION_MAX_TOKENS
                )
            else:
                completion = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.settings.COMPLETION_TEMPERATURE,
                    max_tokens=self.settings.COMPLETION_MAX_TOKENS
                )
        except TIMEOUT_ERRORS as e:
            logger.error(f"⏱️ Completion timed out after {time.time() - started:.1f}s: {e}")
            raise UpstreamTimeoutError("Completion provider timed out")
        except PROVIDER_ERRORS as e:
            logger.error(f"❌ Completion call failed: {e}")
            raise CompletionError(f"Completion provider failed: {e}")

        if not completion.choices:
            raise CompletionError("Completion provider returned no choices")

        content = completion.choices[0].message.content
        if not content or not content.strip():
            raise CompletionError("Completion provider returned an empty response")

        logger.info(f"🤖 Completion received in {time.time() - started:.1f}s ({len(content)} chars)")
        return content.strip()

    def health_check(self) -> Dict[str, Any]:
        """Configuration-level health; no provider round trip"""
        return {
            "status": "healthy" if self.client is not None else "error",
            "provider": self.provider,
            "model": self.model
        }

    def close(self):
        self._executor.shutdown(wait=False)
        if hasattr(self.client, "close"):
            self.client.close()
