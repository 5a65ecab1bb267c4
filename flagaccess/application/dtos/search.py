"""DTO for collection reads."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class SearchResult:
    """Result of a list read.

    ``total`` is the store's raw count before filtering; ``data`` and
    ``length`` reflect what the actor may see, so ``length <= total``.
    """

    data: list[dict[str, Any]]
    length: int
    total: int
