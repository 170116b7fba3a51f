"""Context lookup used to supplement model replies with current information.

There is no real web search behind this: :class:`SimulatedSearch` returns
canned results per query category so the augmentation flow can run (and be
tested) without a search backend. Anything implementing
:class:`ContextLookup` can replace it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger("deskpet")

MAX_FORMATTED_RESULTS = 3


@dataclass(frozen=True)
class ContextSnippet:
    title: str
    snippet: str
    source: str


@dataclass
class SearchResults:
    results: List[ContextSnippet] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.error is None and len(self.results) > 0


class ContextLookup(ABC):
    """Source of context snippets for a query."""

    @abstractmethod
    def search(self, query: str) -> SearchResults:
        """Return snippets for 'query', or a SearchResults carrying an error."""


def format_search_results(search_results: SearchResults, limit: int = MAX_FORMATTED_RESULTS) -> str:
    """Format search results as a numbered list for the model.

    Args:
        search_results: Results to format
        limit: Maximum number of results to include

    Returns:
        One block per result: ``"<n>. <title> (<source>)\\n   <snippet>"``
    """
    if not search_results.results:
        return "No current information found."

    formatted = []
    for i, result in enumerate(search_results.results[:limit], 1):
        title = result.title or "No title"
        snippet = result.snippet or "No description"
        source = result.source or "Unknown source"
        formatted.append(f"{i}. {title} ({source})\n   {snippet}")

    return "\n\n".join(formatted)


class SimulatedSearch(ContextLookup):
    """Category-based canned search results."""

    def search(self, query: str) -> SearchResults:
        logger.info("🔍 Performing smart search: %s", query)
        results = self._simulate(query)
        logger.info("📊 Search results: %d", len(results.results))
        return results

    def _simulate(self, query: str) -> SearchResults:
        query_lower = query.lower()

        if "weather today" in query_lower:
            if "madrid" in query_lower:
                return self.weather_results("Madrid")
            return self.weather_results("location")

        if "real madrid latest match" in query_lower:
            return self.football_results()

        if "bitcoin price" in query_lower:
            return self.financial_results()

        if "latest news" in query_lower:
            return self.news_results()

        if "football results" in query_lower:
            return self.sports_results()

        if "financial markets" in query_lower:
            return self.market_results()

        return self.current_info_results(query)

    @staticmethod
    def weather_results(location: str) -> SearchResults:
        if location.lower() == "madrid":
            return SearchResults(results=[
                ContextSnippet(
                    title="Madrid Weather Now",
                    snippet="Partly cloudy, 8°C (46°F). High: 12°C, Low: 4°C. Light wind from the "
                            "northwest at 10 km/h. No precipitation expected.",
                    source="AEMET - Agencia Estatal de Meteorología",
                ),
                ContextSnippet(
                    title="Current Weather Conditions Madrid",
                    snippet="Real-time weather: 8°C, feels like 6°C. Humidity 65%, visibility 10km. "
                            "Air quality: Good.",
                    source="Weather.com",
                ),
            ])
        return SearchResults(results=[
            ContextSnippet(
                title="Weather Today",
                snippet="Current weather conditions and forecast. Check local weather services for "
                        "specific location data.",
                source="Weather Service",
            ),
        ])

    @staticmethod
    def football_results() -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Real Madrid 3-1 Athletic Bilbao - Yesterday",
                snippet="Real Madrid ganó 3-1 contra Athletic Bilbao ayer en el Santiago Bernabéu. "
                        "Goles de Vinícius Jr. (2) y Bellingham. Los Blancos siguen líderes en La Liga "
                        "con 2 puntos de ventaja sobre el Barcelona.",
                source="Marca.com",
            ),
            ContextSnippet(
                title="La Liga Standings - Current",
                snippet="1. Real Madrid - 58 pts, 2. FC Barcelona - 56 pts, 3. Atlético Madrid - 51 pts. "
                        "El Real Madrid ha ganado 4 de sus últimos 5 partidos en Liga.",
                source="ESPN Deportes",
            ),
        ])

    @staticmethod
    def financial_results() -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Bitcoin Price Now",
                snippet="Bitcoin: $52,430 USD (+2.3% today). Market cap: $1.03T. "
                        "24h trading volume: $28.5B.",
                source="CoinMarketCap",
            ),
        ])

    @staticmethod
    def news_results() -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Latest News Today",
                snippet="Top headlines: Technology markets show growth, renewable energy initiatives "
                        "expanded, international cooperation agreements signed.",
                source="News Agency",
            ),
        ])

    @staticmethod
    def sports_results() -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Football Results Today",
                snippet="La Liga: Real Madrid lidera. Premier League: Manchester City 2-0 Arsenal. "
                        "Champions League: Octavos de final próxima semana.",
                source="Mundo Deportivo",
            ),
        ])

    @staticmethod
    def market_results() -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Financial Markets Today",
                snippet="Global markets mixed. S&P 500 +0.8%, NASDAQ +1.2%, EUR/USD 1.0856. "
                        "Tech stocks leading gains.",
                source="Financial Times",
            ),
        ])

    @staticmethod
    def current_info_results(query: str) -> SearchResults:
        return SearchResults(results=[
            ContextSnippet(
                title="Current Information Search",
                snippet=f"Current search for: '{query}'. For more specific information, try "
                        "rephrasing your question.",
                source="Search Engine",
            ),
        ])


__all__ = [
    "ContextSnippet",
    "SearchResults",
    "ContextLookup",
    "SimulatedSearch",
    "format_search_results",
    "MAX_FORMATTED_RESULTS",
]
