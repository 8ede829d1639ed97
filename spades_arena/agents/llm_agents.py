# spades_arena/agents/llm_agents.py
from __future__ import annotations

import json
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from ..cards import Suit
from ..llm_clients import LLMRouter, ModelSpec
from .base import SpadesAgent
from .random_agent import RandomSpadesAgent

ESSENTIAL_RULES = """
Essentials:
- Standard 52-card deck, four players in two partnerships: seats 0 & 2 against seats 1 & 3. Each player holds 13 cards.
- Spades are always trump. Ace is high, 2 is low.
- Bidding: each player bids once, starting left of the dealer. A bid is 1-13 tricks, or 0 for Nil (a promise to take no tricks at all).
- Play: you must follow the led suit if you can. If you cannot, any card may be played, including a Spade.
- Spades may not be led until a Spade has been played on another suit ("spades broken"), unless your hand holds only Spades.
- Trick winner: the highest Spade if any Spade was played, otherwise the highest card of the led suit.
- Scoring (per partnership): making the combined bid scores 10 per bid trick; each extra trick is a bag and scores nothing. Missing the bid loses 10 per bid trick.
- Nil: +100 if the Nil bidder takes no tricks, -100 otherwise. If both partners bid Nil it is worth +/-200.
- Every 10 accumulated bags cost 100 points. The first partnership to reach the target score ends the game; the highest score wins.
- Card indices in your hand are 0-indexed; you may only choose an index from `legal_move_indices` when playing a card.
""".strip()

logger = logging.getLogger(__name__)


@dataclass
class ParsedModelResponse:
    data: Dict[str, Any]
    rationale: str
    final_json_text: str


class LLMCallFailed(RuntimeError):
    """Raised when an LLM call exhausts all retry attempts."""

    def __init__(self, *, label: str, purpose: str, attempts: int, error: Exception):
        message = (
            f"LLM {label} failed for {purpose} after {attempts} attempts: {error}"
        )
        super().__init__(message)
        self.label = label
        self.purpose = purpose
        self.attempts = attempts
        self.error = error


class LLMSpadesAgent(SpadesAgent):
    """Spades agent that delegates its decisions to an LLM.

    It uses an :class:`LLMRouter` (LiteLLM underneath) and a ``ModelSpec``
    such as ``openai/gpt-4o`` or ``anthropic/claude-sonnet-4-20250514``.

    The agent always *tries* to follow the JSON contract described in the
    prompts. If the model output can't be parsed or is out-of-bounds, it falls
    back to a :class:`RandomSpadesAgent` so the game can continue. If an API
    call fails, the agent retries before raising :class:`LLMCallFailed` to
    halt the run.
    """

    def __init__(
        self,
        model: Union[str, ModelSpec],
        *,
        router: Optional[LLMRouter] = None,
        temperature: float = 0.0,
        max_output_tokens: int = 256,
        seed: Optional[int] = None,
        max_api_retries: int = 5,
        retry_delay_seconds: float = 2.0,
    ) -> None:
        if isinstance(model, ModelSpec):
            self.model_spec = model
        else:
            self.model_spec = ModelSpec.parse(model)

        self.router = router or LLMRouter(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        self.temperature = float(temperature)
        self.max_output_tokens = int(max_output_tokens)

        # Fallback agent in case JSON parsing fails.
        self._rng = random.Random(seed)
        self._fallback = RandomSpadesAgent(rng=self._rng)

        self._max_api_retries = max(1, int(max_api_retries))
        self._retry_delay_seconds = float(retry_delay_seconds)
        self.fallback_count = 0

    @property
    def label(self) -> str:
        """Human-friendly label for logs and tables."""
        return self.model_spec.label

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def _sanitize_observation(self, observation: Dict[str, Any]) -> str:
        """Turn a game observation into JSON for use in prompts."""
        try:
            return json.dumps(observation, default=str, sort_keys=True, indent=2)
        except TypeError:
            return json.dumps({"error": "failed to serialize observation"}, indent=2)

    def _describe_card(self, card: Dict[str, Any]) -> str:
        code = (card or {}).get("code")
        suit = (card or {}).get("suit")
        if not code or suit not in Suit.__members__:
            return "UNKNOWN"
        return f"{code[:-1]}{Suit[suit].symbol}"

    def _format_hand_indices(self, hand: List[Dict[str, Any]]) -> str:
        """Produce '0: A♠, 1: 10♥' style mapping for the hand."""
        if not hand:
            return "<empty hand>"
        return ", ".join(f"{i}: {self._describe_card(card)}" for i, card in enumerate(hand))

    def _format_legal_options(self, hand: List[Dict[str, Any]], legal_indices: List[int]) -> str:
        if not legal_indices:
            return "<none provided>"
        parts = []
        for idx in legal_indices:
            card = hand[idx] if 0 <= idx < len(hand) else None
            parts.append(f"{idx}: {self._describe_card(card or {})}")
        return ", ".join(parts)

    def _state_digest(self, observation: Dict[str, Any]) -> str:
        """Construct a compact digest for quick reference."""
        player = observation.get("player") or {}
        pid = player.get("id")
        partner = player.get("partner_id")
        bids = observation.get("bids") or {}
        tricks = observation.get("tricks_taken_so_far") or {}

        def bid_text(value: Any) -> str:
            if value is None:
                return "<none>"
            return "Nil" if value == 0 else str(value)

        parts = [
            f"You are {pid} (partnership {player.get('partnership_id')}), partner {partner}",
            f"Your bid: {bid_text(bids.get(pid))}; partner bid: {bid_text(bids.get(partner))}",
        ]
        if tricks:
            parts.append(
                f"Tricks won: you {tricks.get(pid, 0)}, partner {tricks.get(partner, 0)}"
            )
        if "spades_broken" in observation:
            parts.append(f"Spades broken: {bool(observation['spades_broken'])}")
        parts.append(f"Cards in hand: {len(observation.get('hand') or [])}")
        return "; ".join(parts)

    def _build_prompt(self, *, observation: Dict[str, Any], instruction_suffix: str) -> Tuple[str, str]:
        obs_json = self._sanitize_observation(observation)
        prefix_lines = [
            "You are playing the partnership trick-taking card game Spades. "
            "You must respect the game rules at all times.",
            ESSENTIAL_RULES,
            "Quick state digest (for fast reference; use the JSON below for full details):",
            self._state_digest(observation),
            instruction_suffix,
            "Here is a JSON description of the current game state from your perspective:",
            obs_json,
            "If you include reasoning, place it before `FINAL_JSON:`. "
            "End with `FINAL_JSON:` followed by ONLY the JSON object; after the "
            "`FINAL_JSON:` label, no other text or punctuation should appear after the closing brace.",
        ]
        return "\n\n".join(prefix_lines), obs_json

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    def _decode_json_prefix(self, text: str) -> Tuple[Dict[str, Any], str]:
        """Decode the first JSON object found in text."""
        decoder = json.JSONDecoder()
        start_brace = text.find("{")
        if start_brace == -1:
            raise ValueError("No JSON object found in model output")
        trimmed = text[start_brace:].lstrip()
        try:
            obj, end_idx = decoder.raw_decode(trimmed)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Failed to decode JSON: {exc}") from exc
        if not isinstance(obj, dict):
            raise ValueError(f"Expected a JSON object, got {type(obj)}")
        return obj, trimmed[:end_idx]

    def _parse_model_response(self, text: str) -> ParsedModelResponse:
        """Extract rationale and JSON object using the FINAL_JSON delimiter."""
        cleaned = text.strip()
        match = re.search(r"FINAL_JSON\s*:?", cleaned, flags=re.IGNORECASE)
        if match:
            rationale = cleaned[: match.start()].strip()
            candidate = cleaned[match.end() :].strip()
        else:
            rationale = ""
            candidate = cleaned

        obj, json_text = self._decode_json_prefix(candidate)
        return ParsedModelResponse(data=obj, rationale=rationale, final_json_text=json_text.strip())

    def _safe_complete(
        self,
        *,
        purpose: str,
        observation: Dict[str, Any],
        system_prompt: str,
        instruction_suffix: str,
    ) -> Optional[Dict[str, Any]]:
        """Call the router and return parsed JSON.

        Returns ``None`` for unparsable responses and raises ``LLMCallFailed``
        after exhausting API retries.
        """
        prompt, _obs_json = self._build_prompt(
            observation=observation,
            instruction_suffix=instruction_suffix,
        )
        last_error: Optional[Exception] = None
        for attempt in range(1, self._max_api_retries + 1):
            try:
                raw_output = self.router.complete(
                    self.model_spec,
                    prompt=prompt,
                    system_prompt=system_prompt,
                    max_output_tokens=self.max_output_tokens,
                    temperature=self.temperature,
                )
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                logger.warning(
                    "LLM %s failed for %s (attempt %d/%d): %s",
                    self.label,
                    purpose,
                    attempt,
                    self._max_api_retries,
                    exc,
                )
                if attempt < self._max_api_retries:
                    time.sleep(self._retry_delay_seconds)
                continue

            logger.debug("LLM %s (%s) raw output: %s", self.label, purpose, raw_output)
            try:
                parsed = self._parse_model_response(raw_output)
            except ValueError as exc:
                logger.warning(
                    "LLM %s returned unparsable output for %s: %s", self.label, purpose, exc
                )
                return None
            if parsed.rationale:
                logger.debug("LLM %s (%s) rationale: %s", self.label, purpose, parsed.rationale)
            return parsed.data

        assert last_error is not None
        raise LLMCallFailed(
            label=self.label,
            purpose=purpose,
            attempts=self._max_api_retries,
            error=last_error,
        )

    # ------------------------------------------------------------------
    # SpadesAgent interface
    # ------------------------------------------------------------------

    def choose_bid(self, observation: Dict[str, Any]) -> int:
        """Choose how many tricks to bid for the current round (0 = Nil)."""
        hand = observation.get("hand") or []
        system_prompt = (
            "You are a strong Spades player focusing on accurate bidding together with your partner. "
            "You want to maximize your partnership's final score. Always output valid JSON."
        )
        instruction_suffix = (
            "Decide how many tricks you expect to win this round.\n"
            f"Legal bids are 0 (Nil) or integers from 1 to {len(hand)} inclusive.\n"
            "Your partnership's bid is the sum of both partners' bids; overtricks become bags.\n"
            f"Your hand (index -> card): {self._format_hand_indices(hand)}\n"
            "You may include a rationale, then end with "
            'FINAL_JSON: {"bid": <integer>} with nothing after the closing brace.'
        )

        result = self._safe_complete(
            purpose="choose_bid",
            observation=observation,
            system_prompt=system_prompt,
            instruction_suffix=instruction_suffix,
        )
        if result is None or "bid" not in result:
            return self._use_fallback_bid(observation, "missing bid in model response")

        raw_bid = result["bid"]
        if isinstance(raw_bid, str) and raw_bid.strip().lower() == "nil":
            return 0
        try:
            bid = int(raw_bid)
        except (TypeError, ValueError):
            return self._use_fallback_bid(observation, f"non-integer bid {raw_bid!r}")
        return max(0, min(len(hand), bid))

    def choose_card(self, observation: Dict[str, Any]) -> int:
        """Choose which card index to play for the current trick."""
        legal_indices = observation.get("legal_move_indices")
        if not isinstance(legal_indices, list) or not legal_indices:
            raise ValueError("Observation missing legal_move_indices")

        hand = observation.get("hand") or []
        system_prompt = (
            "You are choosing which card to play for this trick in Spades. "
            "The environment has already computed `legal_move_indices`, which "
            "are the indices in your hand that you are allowed to play. "
            "You must pick one of those indices. Always output valid JSON."
        )
        instruction_suffix = (
            "Pick exactly one integer index from the `legal_move_indices` list "
            "in the observation. Card indices are 0-indexed within your current hand.\n"
            f"Hand with indices: {self._format_hand_indices(hand)}\n"
            f"Legal move options (index -> card): {self._format_legal_options(hand, legal_indices)}\n"
            "You may include a rationale, then end with "
            'FINAL_JSON: {"card_index": <integer>} with nothing after the closing brace.'
        )

        result = self._safe_complete(
            purpose="choose_card",
            observation=observation,
            system_prompt=system_prompt,
            instruction_suffix=instruction_suffix,
        )
        if result is None or "card_index" not in result:
            return self._use_fallback_card(observation, "missing card_index in model response")

        try:
            idx = int(result["card_index"])
        except (TypeError, ValueError):
            return self._use_fallback_card(
                observation, f"non-integer card_index {result.get('card_index')!r}"
            )
        if idx not in legal_indices:
            return self._use_fallback_card(
                observation, f"illegal card_index {idx}; legal indices: {legal_indices}"
            )
        return idx

    def _use_fallback_bid(self, observation: Dict[str, Any], reason: str) -> int:
        self.fallback_count += 1
        logger.warning("LLM %s: %s; using fallback bid", self.label, reason)
        return self._fallback.choose_bid(observation)

    def _use_fallback_card(self, observation: Dict[str, Any], reason: str) -> int:
        self.fallback_count += 1
        logger.warning("LLM %s: %s; using fallback card", self.label, reason)
        return self._fallback.choose_card(observation)
