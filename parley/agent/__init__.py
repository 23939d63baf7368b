"""Conversation core: intents, the suspension primitive and the loop."""

from parley.agent.dialogue import Dialogue
from parley.agent.intent import Intent, ValueCategory, parse_payload

__all__ = ["Dialogue", "Intent", "ValueCategory", "parse_payload"]
