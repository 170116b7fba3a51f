"""Claude client that supplements replies with current information.

When the first reply admits it lacks current data, or the user asks about
something time-sensitive, a context lookup is run and the model is asked once
more with the results. Any failure in that second round falls back to the
first reply.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from llm.vertex import EmptyResponseError, LLMError, Message, VertexClient
from tools.search import ContextLookup, SearchResults, SimulatedSearch, format_search_results

logger = logging.getLogger("deskpet")

# Phrases in a reply that indicate the model has no current data
TRIGGER_PATTERNS = tuple(
    re.compile(re.escape(phrase), re.IGNORECASE)
    for phrase in (
        "I don't have access to current information",
        "I cannot provide real-time information",
        "I don't have access to weather data",
        "real-time weather information",
        "I don't have access to internet",
        "updated data",
        "I don't have access to real-time",
        "I don't have access to current",
        "I cannot access current",
        "I don't have internet access",
        "real-time information",
        "current information",
        "up-to-date information",
    )
)

RECENCY_KEYWORDS = (
    "hoy", "today", "ahora", "now", "actual", "current",
    "reciente", "recent", "último", "latest", "tiempo",
    "weather", "noticias", "news", "precio", "price",
)
# Substring match, so "precios" and "actualidad" count too
_RECENCY_RE = re.compile("|".join(re.escape(k) for k in RECENCY_KEYWORDS), re.IGNORECASE)

WEATHER_WORDS = ("tiempo", "weather", "clima")
SPORTS_WORDS = ("real madrid", "madrid", "partido", "match", "resultado", "fútbol", "futbol", "football")
RECENT_MATCH_WORDS = ("último", "last", "recent", "ayer", "yesterday")
NEWS_WORDS = ("noticias", "news", "novedades")
FINANCE_WORDS = ("precio", "price", "bitcoin", "crypto", "bolsa")

# "weather in Madrid", "tiempo en Madrid", "tiempo de Madrid"
LOCATION_PATTERNS = tuple(
    re.compile(rf"\b{prep}\s+([A-Za-zÀ-ÿ\s]+)", re.IGNORECASE)
    for prep in ("in", "en", "de")
)

ENHANCED_PROMPT = (
    "I searched for current information about '{query}' and found this:\n\n"
    "{context}\n\n"
    "With this info, respond to my original question briefly and informally "
    "(maximum 2-3 sentences)."
)

SMART_SYSTEM_PROMPT = """You are Claude, a friendly AI assistant that responds in an informal, conversational way.

RESPONSE STYLE:
- Keep responses SHORT and to the point (2-3 sentences max)
- Use informal, friendly language like talking to a friend
- Be direct and casual, skip formal introductions
- Use contractions (it's, that's, won't, etc.)
- Get straight to the answer

EXAMPLES:
- Instead of: "Based on the current information provided, Real Madrid's latest match was yesterday..."
- Say: "¡El Madrid ganó 3-1 al Athletic ayer! Vinícius metió 2 goles."

- Instead of: "The current weather conditions in Madrid show..."
- Say: "En Madrid hace 8°C, algo nublado pero sin lluvia."

When you need current information, just mention it briefly and I'll help get the data."""


def _contains_any(text: str, words: Sequence[str]) -> bool:
    return any(word in text for word in words)


def _latest_user_message(messages: Sequence[Message]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return ""


class SmartClient:
    """Wrap a :class:`VertexClient` with one optional augmentation round trip."""

    def __init__(
        self,
        client: VertexClient,
        lookup: Optional[ContextLookup] = None,
        auto_search_enabled: bool = True,
    ) -> None:
        self.client = client
        self.lookup = lookup if lookup is not None else SimulatedSearch()
        self.auto_search_enabled = auto_search_enabled

    def initialize(self) -> None:
        if not self.client.config.system_prompt:
            self.client.config.system_prompt = self.get_smart_system_prompt()
        self.client.initialize()
        logger.info("✅ SmartClient initialized (auto search %s)",
                    "enabled" if self.auto_search_enabled else "disabled")

    def send_message(self, messages: Sequence[Message]) -> str:
        """Get a reply, augmenting it with looked-up context when warranted.

        Args:
            messages: Conversation turn ending with the user's message

        Returns:
            The augmented reply, or the primary reply when augmentation is not
            needed or does not succeed

        Raises:
            LLMError: The primary request failed or returned no text
        """
        initial_response = self.client.send_message(messages)
        if not initial_response:
            raise EmptyResponseError("empty response from Claude")

        if not self.auto_search_enabled or not self.needs_web_search(initial_response, messages):
            return initial_response

        logger.info("🔍 Reply needs current information, enhancing with search...")
        logger.debug("📝 Initial response: %s...", initial_response[:100])

        user_message = _latest_user_message(messages)
        query = self.extract_search_query(user_message, initial_response)
        logger.info("🎯 Extracted search query: %s", query)

        search_results = self.perform_smart_search(query)
        if not search_results.usable:
            if search_results.error:
                logger.warning("Search failed, keeping original response: %s", search_results.error)
            else:
                logger.info("No search results, keeping original response")
            return initial_response

        try:
            return self.create_enhanced_response(messages, initial_response, query, search_results)
        except LLMError as e:
            logger.warning("Failed to create enhanced response, falling back to original: %s", e)
            return initial_response

    def needs_web_search(self, response: str, messages: Sequence[Message]) -> bool:
        for pattern in TRIGGER_PATTERNS:
            if pattern.search(response):
                logger.debug("Search trigger found: %s", pattern.pattern)
                return True

        match = _RECENCY_RE.search(_latest_user_message(messages))
        if match:
            logger.debug("Current information indicator found: %s", match.group(0))
            return True
        return False

    def extract_search_query(self, user_message: str, response: str = "") -> str:
        """Derive a lookup query from the user's message.

        Categories are tried in order: weather, sports, news, finance. The
        fallback embeds the message with its original casing.
        """
        user_lower = user_message.lower()

        if _contains_any(user_lower, WEATHER_WORDS):
            for pattern in LOCATION_PATTERNS:
                match = pattern.search(user_message)
                if match and match.group(1).strip():
                    return f"weather today {match.group(1).strip()}"
            return "weather today"

        if _contains_any(user_lower, SPORTS_WORDS):
            if "real madrid" in user_lower:
                if _contains_any(user_lower, RECENT_MATCH_WORDS):
                    return "Real Madrid latest match result today"
                return "Real Madrid news today"
            return "football results today Spain"

        if _contains_any(user_lower, NEWS_WORDS):
            return "latest news today"

        if _contains_any(user_lower, FINANCE_WORDS):
            if "bitcoin" in user_lower:
                return "Bitcoin price today"
            return "financial markets today"

        return f"current information about {user_message}"

    def perform_smart_search(self, query: str) -> SearchResults:
        try:
            return self.lookup.search(query)
        except Exception as e:
            logger.warning("Context lookup raised: %s", e)
            return SearchResults(results=[], error=str(e))

    def create_enhanced_response(
        self,
        messages: Sequence[Message],
        initial_response: str,
        query: str,
        search_results: SearchResults,
    ) -> str:
        enhanced_messages = list(messages)
        enhanced_messages.append(Message(role="assistant", content=initial_response))
        enhanced_messages.append(Message(
            role="user",
            content=ENHANCED_PROMPT.format(query=query, context=self.format_search_results(search_results)),
        ))

        enhanced_response = self.client.send_message(enhanced_messages)
        if not enhanced_response:
            raise EmptyResponseError("empty enhanced response")

        logger.info("✅ Enhanced response created with current information")
        return enhanced_response

    @staticmethod
    def format_search_results(search_results: SearchResults) -> str:
        return format_search_results(search_results)

    @staticmethod
    def get_smart_system_prompt() -> str:
        return SMART_SYSTEM_PROMPT

    def is_available(self) -> bool:
        return self.client.is_available()

    def shutdown(self) -> None:
        self.client.shutdown()


__all__ = [
    "SmartClient",
    "TRIGGER_PATTERNS",
    "RECENCY_KEYWORDS",
    "ENHANCED_PROMPT",
    "SMART_SYSTEM_PROMPT",
]
