"""
Push Dispatcher component.

Runs the filter engine for every configured subscriber and hands each
matched commit to the notifier. A failed notification is logged and
counted; it never stops the remaining notifications for the event.
"""

import asyncio
from typing import Protocol

from ghmailer.config import Configuration
from ghmailer.models.api_response import DispatchResult
from ghmailer.models.push_event import Commit, PushEvent
from ghmailer.models.subscriber import Subscriber
from ghmailer.services.filter_engine import filter_commits
from ghmailer.services.notifier import DeliveryError
from ghmailer.utils.logging import get_logger, log_delivery, log_error_with_context, log_push_event

logger = get_logger(__name__)


class Notifier(Protocol):
    """Anything able to deliver a single commit notification."""

    def send(self, subscriber: Subscriber, commit: Commit) -> None:
        ...


class PushDispatcher:
    """Notifies subscribers about the commits of a push event."""

    def __init__(self, configuration: Configuration, notifier: Notifier):
        """
        Initialize the dispatcher.

        Args:
            configuration: Loaded configuration holding the subscribers
            notifier: Delivery backend, called once per matched commit
        """
        self.configuration = configuration
        self.notifier = notifier

    async def dispatch(self, push_event: PushEvent) -> DispatchResult:
        """
        Notify every subscriber about the commits matching their filters.

        Subscribers are visited in no particular order. Blocking delivery
        runs in a worker thread.

        Args:
            push_event: Decoded push event

        Returns:
            DispatchResult with match and delivery counts
        """
        log_push_event(
            logger,
            repository=push_event.repository.name,
            ref=push_event.ref,
            commit_count=len(push_event.commits)
        )

        result = DispatchResult()

        for subscriber_id, subscriber in self.configuration.users.items():
            subscriber_logger = logger.with_context(subscriber=subscriber_id)

            try:
                commits = filter_commits(subscriber, push_event)
            except Exception as e:
                log_error_with_context(
                    subscriber_logger,
                    f"Unexpected error filtering commits for {subscriber_id}",
                    e,
                    repository=push_event.repository.name
                )
                result.errors.append(f"{subscriber_id} - {e}")
                continue

            if not commits:
                continue

            subscriber_logger.info(
                f"{len(commits)} commit(s) matched for subscriber {subscriber_id}",
                extra={"repository": push_event.repository.name}
            )
            result.matched_count += len(commits)

            for commit in commits:
                try:
                    await asyncio.to_thread(self.notifier.send, subscriber, commit)
                except DeliveryError as e:
                    log_delivery(subscriber_logger, subscriber_id, commit.id, error=str(e))
                    result.failed_count += 1
                    result.errors.append(f"{subscriber_id}:{commit.id} - {e}")
                except Exception as e:
                    log_error_with_context(
                        subscriber_logger,
                        f"Unexpected error notifying {subscriber_id} about commit {commit.id}",
                        e,
                        commit_id=commit.id
                    )
                    result.failed_count += 1
                    result.errors.append(f"{subscriber_id}:{commit.id} - {e}")
                else:
                    log_delivery(subscriber_logger, subscriber_id, commit.id)
                    result.delivered_count += 1

        logger.info(
            f"Delivered {result.delivered_count}/{result.matched_count} notifications",
            extra={"repository": push_event.repository.name}
        )
        return result
