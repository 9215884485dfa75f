"""
Unit tests for ConfirmationService.

Covers every failure branch of the check order, the invalidation of
replaced tokens, event hooks and the compare-and-set loser path.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.domain.confirmation import ConfirmationService
from src.domain.events import Event
from src.domain.exceptions import NotFound
from src.domain.ports import Outcome, TokenType
from tests.support import TTL


@pytest.fixture
def service(users, tokens, events, clock) -> ConfirmationService:
    return ConfirmationService(users=users, tokens=tokens, events=events, clock=clock)


class TestConfirmSuccess:
    """Tests for the happy path."""

    def test_valid_token_confirms_user(self, service, users, tokens, make_user, clock) -> None:
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)

        outcome = service.confirm(user.id, token.code)

        assert outcome is Outcome.SUCCESS
        assert users.find_by_id(user.id).confirmed_at == clock()
        assert tokens.resolve(token.code).is_consumed

    def test_token_valid_until_last_instant(self, service, tokens, make_user, clock) -> None:
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)
        clock.advance(TTL)

        assert service.confirm(user.id, token.code) is Outcome.SUCCESS


class TestConfirmNotFound:
    """Tests for request-fatal conditions."""

    def test_unknown_user_raises_not_found(self, service) -> None:
        with pytest.raises(NotFound):
            service.confirm(999, "whatever")

    def test_disabled_confirmation_raises_not_found(self, users, tokens, make_user, clock) -> None:
        """A valid token is not consumed when confirmation is disabled."""
        service = ConfirmationService(users=users, tokens=tokens, confirmation_enabled=False, clock=clock)
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)

        with pytest.raises(NotFound):
            service.confirm(user.id, token.code)

        assert not tokens.resolve(token.code).is_consumed
        assert not users.find_by_id(user.id).is_confirmed


class TestConfirmTokenFailures:
    """Tests for token lifecycle failures."""

    def test_unknown_code_is_invalid(self, service, make_user) -> None:
        user = make_user()
        assert service.confirm(user.id, "not-a-real-code") is Outcome.INVALID_TOKEN

    def test_code_of_other_user_is_invalid(self, service, users, tokens, make_user) -> None:
        """Code substitution across accounts changes nothing."""
        alice = make_user("alice@example.com", "alice")
        bob = make_user("bob@example.com", "bob")
        bobs_token = tokens.issue(bob.id, TokenType.CONFIRMATION, TTL)

        outcome = service.confirm(alice.id, bobs_token.code)

        assert outcome is Outcome.INVALID_TOKEN
        assert not users.find_by_id(alice.id).is_confirmed
        assert not users.find_by_id(bob.id).is_confirmed
        assert not tokens.resolve(bobs_token.code).is_consumed

    def test_non_confirmation_token_is_invalid(self, service, tokens, make_user) -> None:
        user = make_user()
        recovery = tokens.issue(user.id, TokenType.RECOVERY, TTL)

        assert service.confirm(user.id, recovery.code) is Outcome.INVALID_TOKEN

    def test_expired_token(self, service, users, tokens, make_user, clock) -> None:
        """Expired tokens fail even though they were never consumed."""
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)
        clock.advance(TTL + timedelta(seconds=1))

        assert service.confirm(user.id, token.code) is Outcome.EXPIRED_TOKEN
        assert not tokens.resolve(token.code).is_consumed
        assert not users.find_by_id(user.id).is_confirmed

    def test_second_confirmation_fails(self, service, tokens, make_user) -> None:
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)
        service.confirm(user.id, token.code)

        assert service.confirm(user.id, token.code) is Outcome.ALREADY_CONSUMED

    def test_expiry_reported_before_consumption(self, service, tokens, make_user, clock) -> None:
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)
        service.confirm(user.id, token.code)
        clock.advance(TTL + timedelta(seconds=1))

        assert service.confirm(user.id, token.code) is Outcome.EXPIRED_TOKEN

    def test_replaced_token_fails_and_new_one_succeeds(self, service, tokens, make_user) -> None:
        """Issue T1, issue T2: T1 no longer confirms, T2 does."""
        user = make_user()
        first = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)
        second = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)

        assert service.confirm(user.id, first.code) is Outcome.INVALID_TOKEN
        assert service.confirm(user.id, second.code) is Outcome.SUCCESS

    def test_losing_the_consume_race(self, users, make_user, clock) -> None:
        """When the store reports a lost compare-and-set, no success is reported."""
        user = make_user()
        store = Mock()
        store.resolve.return_value = Mock(
            user_id=user.id,
            type=TokenType.CONFIRMATION,
            is_consumed=False,
            is_expired=Mock(return_value=False),
            is_live=Mock(return_value=True),
        )
        store.consume_and_confirm.return_value = Outcome.ALREADY_CONSUMED
        service = ConfirmationService(users=users, tokens=store, clock=clock)

        assert service.confirm(user.id, "raced-code") is Outcome.ALREADY_CONSUMED


class TestConfirmEvents:
    """Tests for confirmation hooks."""

    def test_success_fires_before_and_after(self, service, events, tokens, make_user) -> None:
        fired = []
        events.on(Event.BEFORE_CONFIRMATION, lambda event, payload: fired.append(event))
        events.on(Event.AFTER_CONFIRMATION, lambda event, payload: fired.append(event))
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)

        service.confirm(user.id, token.code)

        assert fired == [Event.BEFORE_CONFIRMATION, Event.AFTER_CONFIRMATION]

    def test_failure_skips_after_hook(self, service, events, make_user) -> None:
        fired = []
        events.on(Event.AFTER_CONFIRMATION, lambda event, payload: fired.append(event))
        user = make_user()

        service.confirm(user.id, "bogus")

        assert fired == []

    def test_failing_observer_does_not_change_outcome(self, service, events, tokens, make_user) -> None:
        def explode(event, payload):
            raise RuntimeError("observer bug")

        events.on(Event.AFTER_CONFIRMATION, explode)
        user = make_user()
        token = tokens.issue(user.id, TokenType.CONFIRMATION, TTL)

        assert service.confirm(user.id, token.code) is Outcome.SUCCESS
