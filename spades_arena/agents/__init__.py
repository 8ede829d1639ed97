from .base import SpadesAgent
from .random_agent import RandomSpadesAgent
from .benchmark_agents import HeuristicSpadesAgent
from .llm_agents import LLMCallFailed, LLMSpadesAgent

__all__ = [
    "SpadesAgent",
    "RandomSpadesAgent",
    "HeuristicSpadesAgent",
    "LLMSpadesAgent",
    "LLMCallFailed",
]
