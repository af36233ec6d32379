"""
Unit tests for PushDispatcher.

Tests that every matched (subscriber, commit) pair is notified and that a
failed delivery does not stop the remaining ones.
"""

from unittest.mock import MagicMock, patch

import pytest

from ghmailer.config import Configuration
from ghmailer.models.push_event import Author, Commit, PushEvent, Repository
from ghmailer.models.subscriber import Filter, Subscriber
from ghmailer.services.filter_engine import filter_commits
from ghmailer.services.notifier import DeliveryError
from ghmailer.services.push_dispatcher import PushDispatcher


ALICE = "alice@example.com"
BOB = "bob@example.com"


@pytest.fixture
def push_event():
    return PushEvent(
        ref="refs/heads/master",
        repository=Repository(name="public-repo"),
        commits=[
            Commit(id="c1", author=Author(email=ALICE)),
            Commit(id="c2", author=Author(email=BOB)),
        ]
    )


@pytest.fixture
def configuration():
    """Three subscribers: one follows Alice, one follows everything, one another repo."""
    return Configuration(
        users={
            "reviewer": Subscriber(email="reviewer@example.com", filters=[Filter(authors=[ALICE])]),
            "lead": Subscriber(email="lead@example.com", filters=[Filter()]),
            "other": Subscriber(email="other@example.com", filters=[Filter(repos=["private-repo"])]),
        }
    )


def sent_pairs(notifier):
    return {
        (call.args[0].email, call.args[1].id)
        for call in notifier.send.call_args_list
    }


@pytest.mark.asyncio
async def test_dispatch_notifies_matching_subscribers(configuration, push_event):
    """Test each matched commit is sent to its subscriber."""
    notifier = MagicMock()
    dispatcher = PushDispatcher(configuration, notifier)

    result = await dispatcher.dispatch(push_event)

    assert sent_pairs(notifier) == {
        ("reviewer@example.com", "c1"),
        ("lead@example.com", "c1"),
        ("lead@example.com", "c2"),
    }
    assert result.matched_count == 3
    assert result.delivered_count == 3
    assert result.failed_count == 0
    assert result.success


@pytest.mark.asyncio
async def test_dispatch_sends_commits_in_event_order(push_event):
    """Test a subscriber receives commits in push order."""
    configuration = Configuration(
        users={"lead": Subscriber(email="lead@example.com", filters=[Filter()])}
    )
    notifier = MagicMock()

    await PushDispatcher(configuration, notifier).dispatch(push_event)

    assert [call.args[1].id for call in notifier.send.call_args_list] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_delivery_failure_is_isolated(configuration, push_event):
    """Test a DeliveryError for one pair does not stop the others."""
    notifier = MagicMock()

    def send(subscriber, commit):
        if subscriber.email == "lead@example.com" and commit.id == "c1":
            raise DeliveryError("Connection refused")

    notifier.send.side_effect = send

    result = await PushDispatcher(configuration, notifier).dispatch(push_event)

    assert notifier.send.call_count == 3
    assert result.delivered_count == 2
    assert result.failed_count == 1
    assert not result.success
    assert result.errors == ["lead:c1 - Connection refused"]


@pytest.mark.asyncio
async def test_unexpected_error_is_isolated(configuration, push_event):
    """Test an unexpected exception is counted like a delivery failure."""
    notifier = MagicMock()
    notifier.send.side_effect = RuntimeError("unexpected")

    result = await PushDispatcher(configuration, notifier).dispatch(push_event)

    assert notifier.send.call_count == 3
    assert result.failed_count == 3
    assert result.delivered_count == 0


@pytest.mark.asyncio
async def test_dispatch_without_matches(push_event):
    """Test nothing is sent when no filter matches."""
    configuration = Configuration(
        users={
            "nobody": Subscriber(email="nobody@example.com"),
            "other": Subscriber(email="other@example.com", filters=[Filter(branches=["develop"])]),
        }
    )
    notifier = MagicMock()

    result = await PushDispatcher(configuration, notifier).dispatch(push_event)

    notifier.send.assert_not_called()
    assert result.matched_count == 0
    assert result.success


@pytest.mark.asyncio
async def test_filter_failure_is_isolated(configuration, push_event):
    """Test an error while evaluating one subscriber does not stop the others."""
    notifier = MagicMock()

    def failing_for_reviewer(subscriber, event):
        if subscriber.email == "reviewer@example.com":
            raise RuntimeError("bad filter")
        return filter_commits(subscriber, event)

    with patch(
        "ghmailer.services.push_dispatcher.filter_commits",
        side_effect=failing_for_reviewer
    ):
        result = await PushDispatcher(configuration, notifier).dispatch(push_event)

    assert sent_pairs(notifier) == {
        ("lead@example.com", "c1"),
        ("lead@example.com", "c2"),
    }
    assert result.delivered_count == 2
    assert result.errors == ["reviewer - bad filter"]
    assert not result.success


@pytest.mark.asyncio
async def test_delivery_logs_carry_subscriber(push_event, caplog):
    """Test per-subscriber log records include the subscriber id."""
    configuration = Configuration(
        users={"lead": Subscriber(email="lead@example.com", filters=[Filter()])}
    )

    with caplog.at_level("INFO", logger="ghmailer.services.push_dispatcher"):
        await PushDispatcher(configuration, MagicMock()).dispatch(push_event)

    matched = [record for record in caplog.records if "matched for subscriber" in record.getMessage()]
    assert len(matched) == 1
    assert matched[0].subscriber == "lead"
