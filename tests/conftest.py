"""
Shared fixtures for CharityCampaignFactory tests.

Time is pinned with patch_global_fields so deadlines are reproducible:
every campaign is created at start_time unless a test moves the clock first.
Storage deposits are added by the create_campaign and donate fixtures, so
tests deal in donation amounts only.
"""

import pytest
from algopy import Account, Bytes, UInt64, arc4
from algopy_testing import AlgopyTestContext, algopy_testing_context
from algosdk import encoding

from contracts.charity_campaigns.contract import (
    CampaignCreated,
    CampaignEdited,
    CampaignFinalized,
    CharityCampaignFactory,
    DonationReceived,
    OwnerFinalizeUpdated,
    OwnershipTransferred,
    RefundIssued,
)


START = 1_700_000_000
DAY = 86_400

# Application account funding: everything above min balance is escrow
APP_BALANCE = 1_000_000_000
APP_MIN_BALANCE = 100_000

EVENT_SIGNATURES = {
    CampaignCreated: "CampaignCreated(byte[],address,address,string,uint64,uint64,string)",
    CampaignEdited: "CampaignEdited(byte[],string,string)",
    DonationReceived: "DonationReceived(byte[],address,uint64)",
    CampaignFinalized: "CampaignFinalized(byte[],uint64,bool,address)",
    RefundIssued: "RefundIssued(byte[],address,uint64)",
    OwnerFinalizeUpdated: "OwnerFinalizeUpdated(address,bool)",
    OwnershipTransferred: "OwnershipTransferred(address,address)",
}


@pytest.fixture
def context() -> AlgopyTestContext:
    """Create a fresh testing context for each test."""
    with algopy_testing_context() as ctx:
        ctx.ledger.patch_global_fields(latest_timestamp=UInt64(START))
        yield ctx


@pytest.fixture
def start_time() -> int:
    return START


@pytest.fixture
def day() -> int:
    return DAY


@pytest.fixture
def deadline() -> int:
    """Deadline of a campaign created at start_time with the default 30 days."""
    return START + 30 * DAY


@pytest.fixture
def after_deadline(deadline) -> int:
    return deadline + DAY


@pytest.fixture
def contract(context: AlgopyTestContext) -> CharityCampaignFactory:
    """Factory created by the default sender, who becomes owner."""
    contract = CharityCampaignFactory()
    contract.create()
    context.ledger.update_account(
        context.ledger.get_app(contract).address,
        balance=UInt64(APP_BALANCE),
        min_balance=UInt64(APP_MIN_BALANCE),
    )
    return contract


@pytest.fixture
def app_address(context: AlgopyTestContext, contract: CharityCampaignFactory) -> Account:
    return context.ledger.get_app(contract).address


@pytest.fixture
def set_escrow(context: AlgopyTestContext, app_address: Account):
    """Leave exactly `escrow` microALGO above the application's minimum balance."""

    def _set_escrow(escrow: int) -> None:
        context.ledger.update_account(
            app_address,
            balance=UInt64(APP_MIN_BALANCE + escrow),
            min_balance=UInt64(APP_MIN_BALANCE),
        )

    return _set_escrow


@pytest.fixture
def beneficiary(context: AlgopyTestContext) -> Account:
    return context.any.account()


@pytest.fixture
def set_time(context: AlgopyTestContext):
    def _set_time(timestamp: int) -> None:
        context.ledger.patch_global_fields(latest_timestamp=UInt64(timestamp))

    return _set_time


@pytest.fixture
def as_sender(context: AlgopyTestContext):
    """Run the next contract call with a different transaction sender."""

    def _as_sender(account: Account):
        return context.txn.create_group(active_txn_overrides={"sender": account})

    return _as_sender


@pytest.fixture
def create_campaign(
    context: AlgopyTestContext,
    contract: CharityCampaignFactory,
    app_address: Account,
    beneficiary: Account,
    as_sender,
):
    def _create_campaign(
        external_id: str = "uuid-1",
        goal: int = 10,
        duration_days: int = 30,
        title: str = "Test Campaign",
        description: str = "Description",
        creator: Account | None = None,
        to: Account | None = None,
        deposit: int | None = None,
    ) -> Bytes:
        sender = creator if creator is not None else context.default_sender
        if deposit is None:
            deposit = contract.get_campaign_deposit(arc4.Address(sender)).native
        args = dict(
            beneficiary=arc4.Address(to if to is not None else beneficiary),
            title=arc4.String(title),
            description=arc4.String(description),
            goal_amount=arc4.UInt64(goal),
            duration_days=arc4.UInt64(duration_days),
            external_id=arc4.String(external_id),
            deposit=context.any.txn.payment(sender=sender, receiver=app_address, amount=UInt64(deposit)),
        )
        with as_sender(sender):
            return contract.create_campaign(**args)

    return _create_campaign


@pytest.fixture
def donate(context: AlgopyTestContext, contract: CharityCampaignFactory, app_address: Account, as_sender):
    """Send a grouped payment + donate call from the donor, adding any first-time deposit."""

    def _donate(external_id: str, donor: Account, amount: int) -> None:
        deposit = contract.get_donation_deposit(arc4.String(external_id), arc4.Address(donor)).native
        payment = context.any.txn.payment(
            sender=donor,
            receiver=app_address,
            amount=UInt64(amount + deposit),
        )
        with as_sender(donor):
            contract.donate(arc4.String(external_id), payment)

    return _donate


@pytest.fixture
def finalize(context: AlgopyTestContext, contract: CharityCampaignFactory, as_sender):
    def _finalize(external_id: str, caller: Account | None = None) -> None:
        with as_sender(caller if caller is not None else context.default_sender):
            contract.finalize_campaign(arc4.String(external_id))

    return _finalize


@pytest.fixture
def claim_refund(contract: CharityCampaignFactory, as_sender):
    def _claim_refund(external_id: str, donor: Account) -> None:
        with as_sender(donor):
            contract.claim_refund(arc4.String(external_id))

    return _claim_refund


@pytest.fixture
def emitted(context: AlgopyTestContext):
    """Decode the ARC-28 events of one type logged by the last application call."""

    def _emitted(event_type: type) -> list:
        selector = encoding.checksum(EVENT_SIGNATURES[event_type].encode())[:4]
        txn = context.txn.last_active
        logs = [txn.logs(index).value for index in range(txn.num_logs.value)]
        return [event_type.from_bytes(log[4:]) for log in logs if log[:4] == selector]

    return _emitted
