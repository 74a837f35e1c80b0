"""Post-transition hooks run after a deal's stage change has been persisted.

DealService.change_stage invokes PostTransitionHooks.run only after the store
accepted the new stage. Hooks are fire-and-forget: errors are logged and
collected in the HookResult but never raised, so a failing side effect cannot
fail the stage change itself.

Exports:
    on_deal_won: Pure rule deciding whether a won deal converts its contact.
    ClientConversionHook: Creates a Client from the deal's contact on a win.
    WonDealNotificationHook: Posts a chat message to a webhook on a win.
    PostTransitionHooks: Runs every registered hook.
    HookResult: Summary of what the hooks did.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

import httpx
import structlog
from pydantic import BaseModel, Field

from src.salepro.pipeline.schemas import Deal, DealStage
from src.salepro.records.adapter import RecordStore
from src.salepro.records.schemas import Client, ClientCreate, Contact

logger = structlog.get_logger(__name__)


class HookResult(BaseModel):
    """Summary of operations performed by the post-transition hooks."""

    actions: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


def _client_key(email: str | None, account_id: str | None) -> tuple[str, str]:
    return ((email or "").strip().lower(), account_id or "")


def on_deal_won(
    deal: Deal,
    contact: Contact,
    existing_clients: Iterable[Client],
) -> ClientCreate | None:
    """Decide whether winning ``deal`` should convert ``contact`` into a client.

    A contact is already converted when a client with the same email
    (case-insensitive) and account id exists.

    Returns:
        ClientCreate sourced from the contact, or None when a matching
        client already exists.
    """
    key = _client_key(contact.email, contact.account_id)
    if any(_client_key(client.email, client.account_id) == key for client in existing_clients):
        return None

    return ClientCreate(
        first_name=contact.first_name,
        last_name=contact.last_name,
        email=contact.email,
        phone=contact.phone,
        company=contact.company,
        job_title=contact.job_title,
        account_id=contact.account_id,
        relationship_level=contact.relationship_level,
        notes=f"Converted from won deal: {deal.title}",
    )


def _won_now(deal: Deal, previous_stage: DealStage | None) -> bool:
    return deal.stage is DealStage.CLOSED_WON and previous_stage is not DealStage.CLOSED_WON


# ── Hooks ───────────────────────────────────────────────────────────────────


class TransitionHook(ABC):
    """A side effect triggered by a persisted stage change."""

    name: str = "hook"

    @abstractmethod
    async def __call__(self, deal: Deal, previous_stage: DealStage | None) -> str | None:
        """Run the side effect; return a description of what was done, or None."""
        ...


class ClientConversionHook(TransitionHook):
    """Creates a Client from the deal's contact when the deal is won.

    Args:
        contacts: Contact store the deal's contact is read from.
        clients: Client store checked for an existing match and written to.
    """

    name = "client_conversion"

    def __init__(self, contacts: RecordStore[Contact], clients: RecordStore[Client]) -> None:
        self._contacts = contacts
        self._clients = clients

    async def __call__(self, deal: Deal, previous_stage: DealStage | None) -> str | None:
        if not _won_now(deal, previous_stage):
            return None
        if deal.contact_id is None:
            logger.info("hooks.client_conversion_skipped", deal_id=deal.id, reason="no_contact")
            return None

        contact = await self._contacts.require(deal.contact_id)
        client_data = on_deal_won(deal, contact, await self._clients.get_all())
        if client_data is None:
            logger.info(
                "hooks.client_already_exists",
                deal_id=deal.id,
                contact_id=contact.id,
            )
            return None

        client = await self._clients.create(client_data)
        if client is None:
            raise RuntimeError(f"client store rejected conversion of contact {contact.id}")

        logger.info(
            "hooks.client_created",
            deal_id=deal.id,
            contact_id=contact.id,
            client_id=client.id,
        )
        return f"Created client {client.id} from contact {contact.full_name}"


class WonDealNotificationHook(TransitionHook):
    """Posts a chat message to a webhook when a deal is won.

    Disabled when no webhook URL is configured.

    Args:
        webhook_url: Incoming-webhook URL (Slack-compatible ``text`` payload).
        timeout: Request timeout in seconds.
    """

    name = "won_deal_notification"

    def __init__(self, webhook_url: str, timeout: float = 10.0) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    async def __call__(self, deal: Deal, previous_stage: DealStage | None) -> str | None:
        if not self._webhook_url or not _won_now(deal, previous_stage):
            return None

        text = f":tada: Deal won: {deal.title} (${deal.value:,.2f})"
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._webhook_url, json={"text": text})
            response.raise_for_status()

        logger.info("hooks.won_deal_notified", deal_id=deal.id)
        return f"Notified won deal {deal.id}"


class PostTransitionHooks:
    """Runs every registered hook after a persisted stage change.

    Args:
        hooks: Hooks in execution order.
    """

    def __init__(self, hooks: Iterable[TransitionHook] = ()) -> None:
        self._hooks = list(hooks)

    async def run(self, deal: Deal, previous_stage: DealStage | None) -> HookResult:
        """Invoke each hook; failures are logged and recorded, never raised.

        Args:
            deal: The deal as persisted after the stage change.
            previous_stage: Stage before the change.

        Returns:
            HookResult summarizing actions and errors.
        """
        result = HookResult()

        for hook in self._hooks:
            try:
                action = await hook(deal, previous_stage)
                if action:
                    result.actions.append(action)
            except Exception as exc:
                logger.warning(
                    "hooks.hook_failed",
                    hook=hook.name,
                    deal_id=deal.id,
                    error=str(exc),
                )
                result.errors.append(f"{hook.name} failed: {exc}")

        logger.info(
            "hooks.run_complete",
            deal_id=deal.id,
            stage=deal.stage.value,
            actions=len(result.actions),
            errors=len(result.errors),
        )
        return result
