# tests/test_llm_agents.py
import pytest

from spades_arena.agents.llm_agents import ESSENTIAL_RULES, LLMCallFailed, LLMSpadesAgent
from spades_arena.llm_clients import ModelSpec


class StubRouter:
    """Replays canned completions instead of calling a provider."""

    def __init__(self, outputs):
        self.outputs = list(outputs)
        self.calls = []

    def complete(self, model_spec, *, prompt, system_prompt=None, max_output_tokens=None, temperature=None):
        self.calls.append({"model": model_spec, "prompt": prompt, "system_prompt": system_prompt})
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


def _observation(phase="bidding"):
    hand = [
        {"suit": "SPADES", "rank": 14, "code": "AS"},
        {"suit": "HEARTS", "rank": 10, "code": "10H"},
        {"suit": "CLUBS", "rank": 2, "code": "2C"},
    ]
    obs = {
        "game": {"game_id": "g", "round_number": 1, "dealer_id": "p0", "target_score": 500},
        "player": {"id": "p1", "name": "P1", "seat": 1, "partnership_id": 2, "partner_id": "p3"},
        "phase": phase,
        "hand": hand,
        "bids": {"p0": 3, "p1": None, "p2": None, "p3": None},
        "tricks_taken_so_far": {"p0": 0, "p1": 0, "p2": 0, "p3": 0},
    }
    if phase == "play":
        obs["legal_move_indices"] = [1, 2]
        obs["spades_broken"] = False
    return obs


def _agent(outputs, **kwargs):
    router = StubRouter(outputs)
    agent = LLMSpadesAgent("openai/gpt-4o-mini", router=router, seed=3, retry_delay_seconds=0, **kwargs)
    return agent, router


def test_model_spec_parsing():
    spec = ModelSpec.parse("anthropic/claude-3-5-haiku-latest")
    assert spec.provider == "anthropic"
    assert spec.litellm_model == "anthropic/claude-3-5-haiku-latest"
    assert ModelSpec.parse("grok:grok-4").litellm_model == "xai/grok-4"
    assert str(ModelSpec.parse("openai:gpt-4o")) == "openai/gpt-4o"
    with pytest.raises(ValueError):
        ModelSpec.parse("gpt-4o")
    with pytest.raises(ValueError):
        ModelSpec.parse("mystery/model")
    with pytest.raises(ValueError):
        ModelSpec.parse("openai/")


def test_bid_is_read_from_final_json():
    agent, router = _agent(['I hold the ace of spades.\nFINAL_JSON: {"bid": 2}'])
    assert agent.choose_bid(_observation()) == 2
    assert "Spades" in router.calls[0]["prompt"]
    assert "0: A♠" in router.calls[0]["prompt"]


def test_nil_bid_text_is_accepted():
    agent, _ = _agent(['FINAL_JSON: {"bid": "nil"}'])
    assert agent.choose_bid(_observation()) == 0


def test_bid_is_clamped_to_hand_size():
    agent, _ = _agent(['FINAL_JSON: {"bid": 40}'])
    assert agent.choose_bid(_observation()) == 3


def test_unparsable_bid_falls_back():
    agent, _ = _agent(["I would rather not say."])
    bid = agent.choose_bid(_observation())
    assert 0 <= bid <= 3
    assert agent.fallback_count == 1


def test_card_choice_must_be_legal():
    agent, _ = _agent(['FINAL_JSON: {"card_index": 2}'])
    assert agent.choose_card(_observation("play")) == 2

    illegal, _ = _agent(['FINAL_JSON: {"card_index": 0}'])
    assert illegal.choose_card(_observation("play")) in (1, 2)
    assert illegal.fallback_count == 1


def test_api_errors_retry_then_succeed():
    agent, router = _agent([RuntimeError("rate limited"), 'FINAL_JSON: {"card_index": 1}'])
    assert agent.choose_card(_observation("play")) == 1
    assert len(router.calls) == 2


def test_api_errors_exhaust_retries():
    agent, router = _agent([RuntimeError("down")] * 3, max_api_retries=3)
    with pytest.raises(LLMCallFailed) as excinfo:
        agent.choose_bid(_observation())
    assert excinfo.value.attempts == 3
    assert excinfo.value.purpose == "choose_bid"
    assert len(router.calls) == 3


def test_rules_prompt_describes_bags_as_pointless():
    agent, router = _agent(['FINAL_JSON: {"bid": 2}'])
    agent.choose_bid(_observation())
    assert ESSENTIAL_RULES in router.calls[0]["prompt"] + (router.calls[0]["system_prompt"] or "")
    assert "scores nothing" in ESSENTIAL_RULES
    assert "worth 1 point" not in ESSENTIAL_RULES
