"""Abstract base class for remote provider registries."""

from abc import ABC, abstractmethod

from mcp_manager.core.models import Provider, ProviderSummary


class AbstractRegistry(ABC):
    """Read contract of a remote provider catalog.

    Implementations raise :class:`SourceUnavailableError` when the remote
    side cannot be reached.  An empty list always means "the registry has
    nothing", never "the fetch failed", so the cache in front of it can
    tell the two apart.
    """

    # Subclasses must define this to identify their type
    REGISTRY_TYPE: str = "unknown"

    def __init__(self, name: str, url: str = ""):
        """Initialize a registry.

        Args:
            name: Registry name, used as the cache key
            url: Where the registry lives
        """
        self.name = name
        self.url = url

    @classmethod
    def can_handle_url(cls, url: str) -> bool:
        """Check if this registry type can handle the given URL.

        Args:
            url: The URL to check

        Returns:
            True if this registry type can handle the URL, False otherwise
        """
        return False

    @abstractmethod
    def list_all(self) -> list[ProviderSummary]:
        """Fetch every provider the registry knows about.

        Raises:
            SourceUnavailableError: If the registry cannot be reached
        """
        pass

    def search(self, query: str, limit: int = 50) -> list[ProviderSummary]:
        """Search the registry.

        The base implementation ranks :meth:`list_all`; registries with a
        server-side search may override it.
        """
        return rank_summaries(self.list_all(), query, limit)

    def get_details(self, provider_id: str) -> Provider | None:
        """Fetch one provider by id, or None if the registry does not have it."""
        for summary in self.list_all():
            if summary.id == provider_id:
                return summary.provider
        return None

    def get_display_url(self) -> str:
        return self.url

    def __str__(self) -> str:
        return f"Registry(name='{self.name}', type={self.REGISTRY_TYPE})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', url='{self.url}')"


def score_provider(provider: Provider, query: str) -> float:
    """Score how well *provider* matches *query*, between 0 and 1.

    Name hits weigh 10, description hits 5 and tag hits 3; an exact
    name match always scores 1.
    """
    needle = query.casefold()
    if not needle:
        return 1.0
    if provider.name.casefold() == needle or provider.id.casefold() == needle:
        return 1.0

    score = 0.0
    if needle in provider.name.casefold() or needle in provider.id.casefold():
        score += 10
    if needle in provider.description.casefold():
        score += 5
    if any(needle in tag.casefold() for tag in provider.tags):
        score += 3
    # Stays below 1 so exact matches rank first
    return score / 19.0


def rank_summaries(summaries: list[ProviderSummary], query: str, limit: int = 50) -> list[ProviderSummary]:
    """Filter and order *summaries* by :func:`score_provider`.

    Ties keep the registry's own order.
    """
    scored = []
    for position, summary in enumerate(summaries):
        score = score_provider(summary.provider, query)
        if score > 0:
            scored.append((-score, position, summary))
    scored.sort(key=lambda item: (item[0], item[1]))

    results = []
    for negative_score, _, summary in scored[: max(limit, 0)]:
        summary.score = -negative_score
        results.append(summary)
    return results
