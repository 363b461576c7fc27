"""Project board cards to pull request numbers.

A card's ``content_url`` is an API resource URL such as
``https://api.github.com/repos/octo/reef/issues/42``, which splits on ``/``
into exactly eight segments: the repository name is third from last and the
pull request number is last.
"""

from __future__ import annotations

import typing as typ

from drover.errors import MalformedCardReferenceError
from drover.logging import get_logger, log_debug

from .observability import ReconcileEventLogger
from .outcome import SkipReason

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from drover.github.models import ProjectCard

logger = get_logger(__name__)

CONTENT_URL_SEGMENTS = 8


def filter_project_cards(
    cards: cabc.Iterable[ProjectCard],
    repository_name: str,
    *,
    event_logger: ReconcileEventLogger | None = None,
) -> list[int]:
    """Return the numbers of pull requests in ``repository_name`` on the board.

    Cards without a content URL (notes, or cards the board automation failed
    to link) and cards from other repositories are skipped.

    Raises
    ------
    MalformedCardReferenceError
        If a content URL does not have the expected shape. This signals an
        upstream schema change and aborts the whole scheduled run.

    """
    events = event_logger or ReconcileEventLogger()
    numbers: list[int] = []
    for card in cards:
        log_debug(logger, "Card %s content url is %s", card.id, card.content_url)
        if not card.content_url:
            events.log_card_skipped(card.id, SkipReason.MISSING_CONTENT_URL)
            continue

        segments = card.content_url.split("/")
        if len(segments) != CONTENT_URL_SEGMENTS:
            raise MalformedCardReferenceError.segment_count(
                card.content_url, len(segments)
            )

        card_repository = segments[-3]
        if card_repository.lower() != repository_name.lower():
            events.log_card_skipped(card.id, SkipReason.OTHER_REPOSITORY)
            continue

        tail = segments[-1]
        if not tail.isdecimal():
            raise MalformedCardReferenceError.non_numeric(card.content_url)
        numbers.append(int(tail))
    return numbers
