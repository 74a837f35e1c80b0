"""Unit tests for post-transition hooks.

Tests the on_deal_won conversion rule (including idempotence),
ClientConversionHook against in-memory stores, WonDealNotificationHook with
a patched httpx client, and the fire-and-forget PostTransitionHooks runner.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.salepro.core.errors import NotFoundError, StoreError
from src.salepro.pipeline.hooks import (
    ClientConversionHook,
    HookResult,
    PostTransitionHooks,
    WonDealNotificationHook,
    on_deal_won,
)
from src.salepro.pipeline.schemas import Deal, DealStage, DealStatus
from src.salepro.records.schemas import (
    Client,
    ContactCreate,
    Contact,
    RelationshipLevel,
)

CLOSED_AT = datetime(2026, 3, 14, tzinfo=timezone.utc)


def _won_deal(**overrides) -> Deal:
    defaults = {
        "id": 11,
        "title": "Globex Analytics Upgrade",
        "contact_id": 1,
        "value": Decimal("48000"),
        "probability": 80,
        "stage": DealStage.CLOSED_WON,
        "status": DealStatus.WON,
        "actual_close_date": CLOSED_AT,
    }
    defaults.update(overrides)
    return Deal(**defaults)


def _contact(**overrides) -> Contact:
    defaults = {
        "id": 1,
        "first_name": "Hank",
        "last_name": "Scorpio",
        "email": "hank@globex.example",
        "phone": "555-0100",
        "company": "Globex",
        "job_title": "CEO",
        "account_id": "acct-globex",
        "relationship_level": RelationshipLevel.DECISION_MAKER,
    }
    defaults.update(overrides)
    return Contact(**defaults)


# ── on_deal_won ────────────────────────────────────────────────────────────


class TestOnDealWon:
    """Tests for the pure client conversion rule."""

    def test_builds_client_from_contact(self):
        client = on_deal_won(_won_deal(), _contact(), [])

        assert client is not None
        assert client.first_name == "Hank"
        assert client.email == "hank@globex.example"
        assert client.company == "Globex"
        assert client.job_title == "CEO"
        assert client.relationship_level is RelationshipLevel.DECISION_MAKER
        assert "Globex Analytics Upgrade" in client.notes

    def test_idempotent_against_post_conversion_state(self):
        """Second call against the client list after the first conversion yields None."""
        deal, contact = _won_deal(), _contact()

        first = on_deal_won(deal, contact, [])
        existing = [Client(id=1, **first.model_dump())]
        second = on_deal_won(deal, contact, existing)

        assert first is not None
        assert second is None

    def test_email_match_is_case_insensitive(self):
        existing = [
            Client(
                id=3,
                first_name="H",
                last_name="S",
                email="HANK@Globex.example",
                account_id="acct-globex",
            )
        ]

        assert on_deal_won(_won_deal(), _contact(), existing) is None

    def test_same_email_different_account_converts(self):
        """Matching is on (email, account_id); another account is a new client."""
        existing = [
            Client(
                id=3,
                first_name="Hank",
                last_name="Scorpio",
                email="hank@globex.example",
                account_id="acct-other",
            )
        ]

        assert on_deal_won(_won_deal(), _contact(), existing) is not None


# ── ClientConversionHook ───────────────────────────────────────────────────


class TestClientConversionHook:
    """Tests for ClientConversionHook over in-memory stores."""

    async def test_creates_client_on_win(self, stores):
        contact = await stores.contacts.create(
            ContactCreate(first_name="Hank", last_name="Scorpio", email="hank@globex.example")
        )
        hook = ClientConversionHook(stores.contacts, stores.clients)

        action = await hook(_won_deal(contact_id=contact.id), DealStage.NEGOTIATION)

        clients = await stores.clients.get_all()
        assert len(clients) == 1
        assert clients[0].email == "hank@globex.example"
        assert action is not None and "Created client" in action

    async def test_second_win_does_not_duplicate(self, stores):
        contact = await stores.contacts.create(
            ContactCreate(first_name="Hank", last_name="Scorpio", email="hank@globex.example")
        )
        hook = ClientConversionHook(stores.contacts, stores.clients)
        deal = _won_deal(contact_id=contact.id)

        await hook(deal, DealStage.NEGOTIATION)
        action = await hook(deal, DealStage.PROPOSAL)

        assert action is None
        assert len(await stores.clients.get_all()) == 1

    async def test_ignores_non_win_transitions(self, stores):
        hook = ClientConversionHook(stores.contacts, stores.clients)
        lost = _won_deal(stage=DealStage.CLOSED_LOST, status=DealStatus.LOST)

        assert await hook(lost, DealStage.NEGOTIATION) is None
        assert await hook(_won_deal(), DealStage.CLOSED_WON) is None
        assert await stores.clients.get_all() == []

    async def test_skips_deal_without_contact(self, stores):
        hook = ClientConversionHook(stores.contacts, stores.clients)

        assert await hook(_won_deal(contact_id=None), DealStage.NEW) is None

    async def test_missing_contact_raises_not_found(self, stores):
        """The hook raises; PostTransitionHooks is what swallows it."""
        hook = ClientConversionHook(stores.contacts, stores.clients)

        with pytest.raises(NotFoundError):
            await hook(_won_deal(contact_id=999), DealStage.NEW)


# ── WonDealNotificationHook ────────────────────────────────────────────────


class TestWonDealNotificationHook:
    """Tests for the won-deal webhook notification."""

    async def test_disabled_without_url(self):
        hook = WonDealNotificationHook("")

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
            assert await hook(_won_deal(), DealStage.NEGOTIATION) is None

        mock_post.assert_not_called()

    async def test_posts_message_on_win(self):
        hook = WonDealNotificationHook("https://chat.example/hooks/abc")
        mock_response = httpx.Response(
            200, request=httpx.Request("POST", "https://chat.example/hooks/abc")
        )

        with patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=mock_response
        ) as mock_post:
            action = await hook(_won_deal(), DealStage.NEGOTIATION)

        assert action == "Notified won deal 11"
        payload = mock_post.call_args.kwargs["json"]
        assert "Globex Analytics Upgrade" in payload["text"]
        assert "48,000.00" in payload["text"]

    async def test_webhook_error_raises(self):
        hook = WonDealNotificationHook("https://chat.example/hooks/abc")
        mock_response = httpx.Response(
            500, request=httpx.Request("POST", "https://chat.example/hooks/abc")
        )

        with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=mock_response):
            with pytest.raises(httpx.HTTPStatusError):
                await hook(_won_deal(), DealStage.NEGOTIATION)


# ── PostTransitionHooks ────────────────────────────────────────────────────


class _RecordingHook:
    name = "recording"

    def __init__(self, action: str | None = "done", error: Exception | None = None) -> None:
        self.calls: list[tuple[int, DealStage | None]] = []
        self._action = action
        self._error = error

    async def __call__(self, deal, previous_stage):
        self.calls.append((deal.id, previous_stage))
        if self._error is not None:
            raise self._error
        return self._action


class TestPostTransitionHooks:
    """Tests for the fire-and-forget hook runner."""

    async def test_runs_every_hook_in_order(self):
        first, second = _RecordingHook("first"), _RecordingHook("second")
        runner = PostTransitionHooks([first, second])

        result = await runner.run(_won_deal(), DealStage.PROPOSAL)

        assert result.actions == ["first", "second"]
        assert first.calls == [(11, DealStage.PROPOSAL)]
        assert second.calls == [(11, DealStage.PROPOSAL)]

    async def test_failure_recorded_not_raised(self):
        """A failing hook is logged and recorded; later hooks still run."""
        failing = _RecordingHook(error=StoreError("record store down"))
        after = _RecordingHook("after")
        runner = PostTransitionHooks([failing, after])

        result = await runner.run(_won_deal(), DealStage.PROPOSAL)

        assert result.errors == ["recording failed: record store down"]
        assert result.actions == ["after"]

    async def test_none_actions_not_recorded(self):
        runner = PostTransitionHooks([_RecordingHook(action=None)])

        result = await runner.run(_won_deal(), DealStage.PROPOSAL)

        assert result == HookResult()

    async def test_no_hooks(self):
        result = await PostTransitionHooks().run(_won_deal(), None)

        assert result.actions == []
        assert result.errors == []
