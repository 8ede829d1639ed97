# spades_arena/llm_clients.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import litellm
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load provider API keys (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...) from a .env file if present.
load_dotenv()

# Providers accepted on the command line, mapped to LiteLLM's provider prefix.
PROVIDER_PREFIXES = {
    "openai": "openai",
    "anthropic": "anthropic",
    "gemini": "gemini",
    "grok": "xai",
    "xai": "xai",
}


@dataclass(frozen=True)
class ModelSpec:
    """Parsed representation of a model identifier like 'openai/gpt-4o'.

    Both ``provider/model`` and ``provider:model`` are accepted.
    """
    provider: str
    model: str

    @classmethod
    def parse(cls, raw: str) -> "ModelSpec":
        separators = [i for i in (raw.find("/"), raw.find(":")) if i != -1]
        if not separators:
            raise ValueError(
                f"Model string '{raw}' must be of the form '<provider>/<model_name>'"
            )
        cut = min(separators)
        provider = raw[:cut].strip().lower()
        model = raw[cut + 1 :].strip()
        if provider not in PROVIDER_PREFIXES:
            raise ValueError(
                f"Unknown provider '{provider}'. Expected one of "
                f"{', '.join(repr(p) for p in sorted(PROVIDER_PREFIXES))}."
            )
        if not model:
            raise ValueError(f"Model name missing in '{raw}'")
        return cls(provider=provider, model=model)

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"

    @property
    def label(self) -> str:
        """Human-readable label for logs and CSV rows."""
        return str(self)

    @property
    def litellm_model(self) -> str:
        return f"{PROVIDER_PREFIXES[self.provider]}/{self.model}"


@dataclass
class UsageTotals:
    calls: int = 0
    failures: int = 0
    cost_usd: float = 0.0
    by_model: Dict[str, float] = field(default_factory=dict)


class LLMRouter:
    """Single entry point for text completions across providers.

    Requests go through ``litellm.completion``; the router only builds the
    chat messages, extracts the reply text and keeps a running cost tally
    from ``litellm.completion_cost``. Agents turn the text into decisions.
    """

    def __init__(
        self,
        *,
        temperature: float = 0.0,
        max_output_tokens: int = 256,
        timeout_seconds: float = 120.0,
    ) -> None:
        self.temperature = float(temperature)
        self.max_output_tokens = int(max_output_tokens)
        self.timeout_seconds = float(timeout_seconds)
        self.usage = UsageTotals()
        self._lock = threading.Lock()

    def complete(
        self,
        model_spec: ModelSpec,
        *,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Generate a text completion from the given model."""
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        max_tokens = max_output_tokens or self.max_output_tokens
        temp = self.temperature if temperature is None else float(temperature)
        logger.debug(
            "LLMRouter.complete model=%s max_output_tokens=%s temperature=%s",
            model_spec.litellm_model,
            max_tokens,
            temp,
        )

        try:
            response = litellm.completion(
                model=model_spec.litellm_model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temp,
                timeout=self.timeout_seconds,
                drop_params=True,
            )
        except Exception:
            with self._lock:
                self.usage.failures += 1
            raise

        self._record_cost(model_spec, response)
        return self._extract_text(response)

    def _record_cost(self, model_spec: ModelSpec, response: Any) -> None:
        try:
            cost = float(litellm.completion_cost(completion_response=response))
        except Exception as exc:  # noqa: BLE001
            logger.debug("No cost information for %s: %s", model_spec.label, exc)
            cost = 0.0
        with self._lock:
            self.usage.calls += 1
            self.usage.cost_usd += cost
            self.usage.by_model[model_spec.label] = (
                self.usage.by_model.get(model_spec.label, 0.0) + cost
            )

    @staticmethod
    def _extract_text(response: Any) -> str:
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError):
            content = None
        if content is None:
            raise RuntimeError("LLM response contained no text content")
        return str(content)

    def log_usage_summary(self) -> None:
        if not self.usage.calls and not self.usage.failures:
            return
        logger.info(
            "LLM usage: %d call(s), %d failure(s), estimated cost $%.4f",
            self.usage.calls,
            self.usage.failures,
            self.usage.cost_usd,
        )
        for label, cost in sorted(self.usage.by_model.items()):
            logger.info("  %s: $%.4f", label, cost)
