"""
Filter Engine component.

Decides which commits of a push event a subscriber should be notified about.
A commit is selected when at least one of the subscriber's filters accepts
the event's repository, the pushed branch and the commit author.
"""

from typing import List, Optional, Set

from ghmailer.models.push_event import Commit, PushEvent
from ghmailer.models.subscriber import Filter, Subscriber
from ghmailer.utils.logging import get_logger

logger = get_logger(__name__)

BRANCH_REF_PREFIX = ("refs", "heads")


class RefParseError(ValueError):
    """Raised when a pushed ref does not name a branch."""
    pass


def extract_branch(ref: str) -> str:
    """
    Extract the branch name from a pushed ref.

    The ref is split on ``/`` into at most three parts, so branch names
    containing slashes are kept whole (``refs/heads/feature/x`` gives
    ``feature/x``).

    Args:
        ref: Reference string from the push event

    Returns:
        Branch name

    Raises:
        RefParseError: If the ref is not shaped ``refs/heads/<branch>``
    """
    parts = ref.split("/", 2)
    if len(parts) != 3 or tuple(parts[:2]) != BRANCH_REF_PREFIX or not parts[2]:
        raise RefParseError(f"Not a branch reference: {ref!r}")
    return parts[2]


def _pushed_branch(push_event: PushEvent) -> Optional[str]:
    try:
        return extract_branch(push_event.ref)
    except RefParseError as e:
        logger.warning(
            f"{e}; filters restricted to branches will not match",
            extra={"repository": push_event.repository.name, "ref": push_event.ref}
        )
        return None


def _filter_accepts_push(
    filter_: Filter,
    repository: str,
    branch: Optional[str]
) -> bool:
    """Repository and branch gates. A ``None`` branch fails any branch restriction."""
    if filter_.repos and repository not in filter_.repos:
        return False
    if filter_.branches and (branch is None or branch not in filter_.branches):
        return False
    return True


def _select_commits(filter_: Filter, commits: List[Commit], matched: Set[str]) -> None:
    authors = set(filter_.authors)
    for commit in commits:
        if not authors or commit.author.email in authors:
            matched.add(commit.id)


def filter_commits(subscriber: Subscriber, push_event: PushEvent) -> List[Commit]:
    """
    Select the commits of a push event that match a subscriber's filters.

    Filters are OR-ed together. The result keeps the event's commit order
    and lists each commit id at most once, even when several filters
    match it.

    Args:
        subscriber: Subscriber whose filters are evaluated
        push_event: Push event to filter

    Returns:
        Matched commits in event order (empty if the subscriber has no filters)
    """
    if not subscriber.filters:
        return []

    branch = None
    if any(f.branches for f in subscriber.filters):
        branch = _pushed_branch(push_event)

    matched: Set[str] = set()
    for filter_ in subscriber.filters:
        if not _filter_accepts_push(filter_, push_event.repository.name, branch):
            continue
        _select_commits(filter_, push_event.commits, matched)

    selected: List[Commit] = []
    seen: Set[str] = set()
    for commit in push_event.commits:
        if commit.id in matched and commit.id not in seen:
            seen.add(commit.id)
            selected.append(commit)

    return selected
