"""
Charity Campaign Factory Smart Contract

A single registry contract for charity crowdfunding. Every campaign is
addressed by a key derived from an off-chain identifier (e.g. a metadata
row UUID), so backend records can be linked before or after the campaign
exists on-chain.

Features:
- Create campaigns with beneficiary, goal and duration
- Creator edits of title/description until finalization
- Donations held in escrow by the application account
- Finalization once the deadline passes or the goal is met
- Payout to the beneficiary on success, per-donor refunds on failure
- Top donor leaderboard per campaign
- Owner fallback finalization that the owner can switch off
- Box storage deposits paid by creators and first-time donors

Algorand Primitives Used:
- AVM Application (smart contract)
- Escrow pattern (contract holds funds)
- Grouped payment transactions (donations, storage deposits)
- Inner Transactions (payout and refunds)
- Boxes (campaigns, contributions, leaderboards, creator index)
- ARC-28 events (arc4.emit)
"""

from algopy import (
    ARC4Contract,
    Account,
    BoxMap,
    Bytes,
    Global,
    GlobalState,
    Txn,
    UInt64,
    arc4,
    gtxn,
    itxn,
    op,
    subroutine,
    urange,
)


SECONDS_PER_DAY = 86_400

# Leaderboard box layout: LEADERBOARD_SIZE records of donor (32) + amount (8)
LEADERBOARD_SIZE = 10
LEADERBOARD_ENTRY_SIZE = 40
LEADERBOARD_BYTES = 400

# Return values and event logs must fit in 1024 bytes
MAX_TITLE_LENGTH = 128
MAX_DESCRIPTION_LENGTH = 640
MAX_EXTERNAL_ID_LENGTH = 64
CREATOR_PAGE_SIZE = 25

# Box minimum balance is 2500 + 400 * (name + value bytes) microALGO.
# Campaign boxes are charged at their largest size (125 fixed bytes plus
# the maximum text lengths) so edits never grow past the deposit.
CAMPAIGN_BOX_DEPOSIT = 398_500  # 33 + 957 bytes
LEADERBOARD_BOX_DEPOSIT = 175_700  # 33 + 400 bytes
CREATOR_COUNT_BOX_DEPOSIT = 18_900  # 33 + 8 bytes
CREATOR_INDEX_BOX_DEPOSIT = 31_700  # 41 + 32 bytes
CONTRIBUTION_BOX_DEPOSIT = 18_900  # 33 + 8 bytes


class Campaign(arc4.Struct):
    creator: arc4.Address
    beneficiary: arc4.Address
    goal_amount: arc4.UInt64
    deadline: arc4.UInt64
    total_raised: arc4.UInt64
    total_refunded: arc4.UInt64
    donor_count: arc4.UInt64
    created_at: arc4.UInt64
    finalized: arc4.Bool
    refund_enabled: arc4.Bool
    title: arc4.String
    description: arc4.String
    external_id: arc4.String


# Events

class CampaignCreated(arc4.Struct):
    key: arc4.DynamicBytes
    creator: arc4.Address
    beneficiary: arc4.Address
    title: arc4.String
    goal_amount: arc4.UInt64
    deadline: arc4.UInt64
    external_id: arc4.String


class CampaignEdited(arc4.Struct):
    key: arc4.DynamicBytes
    title: arc4.String
    description: arc4.String


class DonationReceived(arc4.Struct):
    key: arc4.DynamicBytes
    donor: arc4.Address
    amount: arc4.UInt64


class CampaignFinalized(arc4.Struct):
    key: arc4.DynamicBytes
    total_raised: arc4.UInt64
    success: arc4.Bool
    finalized_by: arc4.Address


class RefundIssued(arc4.Struct):
    key: arc4.DynamicBytes
    donor: arc4.Address
    amount: arc4.UInt64


class OwnerFinalizeUpdated(arc4.Struct):
    owner: arc4.Address
    enabled: arc4.Bool


class OwnershipTransferred(arc4.Struct):
    previous_owner: arc4.Address
    new_owner: arc4.Address


@subroutine
def campaign_key(external_id: arc4.String) -> Bytes:
    """Derive the campaign key: sha256 of the UTF-8 external identifier."""
    return op.sha256(external_id.native.bytes)


@subroutine
def ledger_key(key: Bytes, donor: Account) -> Bytes:
    """Contribution box key; hashed to stay within the 64 byte box name limit."""
    return op.sha256(key + donor.bytes)


@subroutine
def rank_donor(board: Bytes, donor: Account, total: UInt64) -> Bytes:
    """
    Upsert a donor's cumulative total into a packed leaderboard.

    The donor's previous record is dropped and a new one is inserted after
    every record whose amount is >= total, so among equal amounts the donor
    who reached the amount first stays ahead. The result is truncated or
    zero-padded back to LEADERBOARD_BYTES.

    Args:
        board: Current packed leaderboard
        donor: Donor whose total changed
        total: Donor's new cumulative contribution

    Returns:
        Re-ranked packed leaderboard
    """
    entry = donor.bytes + op.itob(total)
    ranked = Bytes()
    placed = False

    for index in urange(LEADERBOARD_SIZE):
        current = op.extract(board, index * LEADERBOARD_ENTRY_SIZE, LEADERBOARD_ENTRY_SIZE)
        amount = op.extract_uint64(current, 32)
        if amount == 0:
            break
        if op.extract(current, 0, 32) == donor.bytes:
            continue
        if not placed and amount < total:
            ranked += entry
            placed = True
        ranked += current

    if not placed:
        ranked += entry

    if ranked.length > LEADERBOARD_BYTES:
        return op.extract(ranked, 0, LEADERBOARD_BYTES)
    return ranked + op.bzero(UInt64(LEADERBOARD_BYTES) - ranked.length)


@subroutine
def assert_escrow_covers(amount: UInt64) -> None:
    """Payouts may only spend funds above the application's minimum balance."""
    app = Global.current_application_address
    assert app.balance >= app.min_balance + amount, "Insufficient escrow balance"


class CharityCampaignFactory(ARC4Contract):
    """
    Campaign registry, contribution ledger, lifecycle controller and
    leaderboard for charity fundraising.

    State Schema:
    - Global State:
        - owner: Platform owner account
        - owner_can_finalize: Whether the owner may finalize any campaign
        - campaign_count: Total campaigns created

    - Boxes:
        - c{key}: Campaign record
        - d{sha256(key + donor)}: Donor's cumulative contribution
        - l{key}: Packed top donor leaderboard
        - n{creator}: Number of campaigns created by an account
        - i{creator}{index}: Key of the creator's index-th campaign
    """

    def __init__(self) -> None:
        self.owner = GlobalState(Account)
        self.owner_can_finalize = GlobalState(bool)
        self.campaign_count = GlobalState(UInt64)

        self.campaigns = BoxMap(Bytes, Campaign, key_prefix=b"c")
        self.contributions = BoxMap(Bytes, UInt64, key_prefix=b"d")
        self.leaderboards = BoxMap(Bytes, Bytes, key_prefix=b"l")
        self.creator_campaign_count = BoxMap(Account, UInt64, key_prefix=b"n")
        self.creator_campaigns = BoxMap(Bytes, Bytes, key_prefix=b"i")

    @arc4.abimethod(create="require")
    def create(self) -> None:
        """
        Create the campaign factory.
        The creating account becomes the owner.
        """
        self.owner.value = Txn.sender
        self.owner_can_finalize.value = True
        self.campaign_count.value = UInt64(0)

    @subroutine
    def _load_campaign(self, key: Bytes) -> Campaign:
        assert key in self.campaigns, "Campaign does not exist"
        return self.campaigns[key].copy()

    @subroutine
    def _campaign_deposit(self, creator: Account) -> UInt64:
        deposit = UInt64(CAMPAIGN_BOX_DEPOSIT + LEADERBOARD_BOX_DEPOSIT + CREATOR_INDEX_BOX_DEPOSIT)
        if creator not in self.creator_campaign_count:
            deposit += CREATOR_COUNT_BOX_DEPOSIT
        return deposit

    # Campaign registry

    @arc4.abimethod
    def create_campaign(
        self,
        beneficiary: arc4.Address,
        title: arc4.String,
        description: arc4.String,
        goal_amount: arc4.UInt64,
        duration_days: arc4.UInt64,
        external_id: arc4.String,
        deposit: gtxn.PaymentTransaction,
    ) -> Bytes:
        """
        Create a new fundraising campaign.
        Must be called with a payment covering the campaign's box storage
        (see get_campaign_deposit) in the same group.

        Args:
            beneficiary: Address to receive funds on success
            title: Campaign title
            description: Campaign description
            goal_amount: Funding goal in microALGOs
            duration_days: Days until the donation deadline
            external_id: Off-chain identifier the key is derived from
            deposit: Payment covering the box minimum balance

        Returns:
            Campaign key
        """
        assert beneficiary.native != Global.zero_address, "Invalid beneficiary address"
        assert title.native.bytes.length > 0, "Title cannot be empty"
        assert title.native.bytes.length <= MAX_TITLE_LENGTH, "Title too long"
        assert description.native.bytes.length <= MAX_DESCRIPTION_LENGTH, "Description too long"
        assert goal_amount.native > 0, "Goal amount too low"
        assert duration_days.native > 0, "Duration must be positive"
        assert external_id.native.bytes.length > 0, "External id cannot be empty"
        assert external_id.native.bytes.length <= MAX_EXTERNAL_ID_LENGTH, "External id too long"

        key = campaign_key(external_id)
        assert key not in self.campaigns, "Campaign already exists for this external id"

        assert deposit.receiver == Global.current_application_address, "Deposit must be sent to the contract"
        assert deposit.amount >= self._campaign_deposit(Txn.sender), "Storage deposit too low"

        now = Global.latest_timestamp
        deadline = now + duration_days.native * SECONDS_PER_DAY

        self.campaigns[key] = Campaign(
            creator=arc4.Address(Txn.sender),
            beneficiary=beneficiary,
            goal_amount=goal_amount,
            deadline=arc4.UInt64(deadline),
            total_raised=arc4.UInt64(0),
            total_refunded=arc4.UInt64(0),
            donor_count=arc4.UInt64(0),
            created_at=arc4.UInt64(now),
            finalized=arc4.Bool(False),
            refund_enabled=arc4.Bool(False),
            title=title,
            description=description,
            external_id=external_id,
        )
        self.leaderboards[key] = op.bzero(LEADERBOARD_BYTES)

        # Append to the creator's index
        index = self.creator_campaign_count.get(Txn.sender, default=UInt64(0))
        self.creator_campaigns[Txn.sender.bytes + op.itob(index)] = key
        self.creator_campaign_count[Txn.sender] = index + 1

        self.campaign_count.value = self.campaign_count.value + 1

        arc4.emit(
            CampaignCreated(
                key=arc4.DynamicBytes(key),
                creator=arc4.Address(Txn.sender),
                beneficiary=beneficiary,
                title=title,
                goal_amount=goal_amount,
                deadline=arc4.UInt64(deadline),
                external_id=external_id,
            )
        )
        return key

    @arc4.abimethod
    def edit_campaign(
        self,
        external_id: arc4.String,
        new_title: arc4.String,
        new_description: arc4.String,
    ) -> None:
        """
        Edit a campaign's title and description.
        Only the creator can edit, and only before finalization.

        Args:
            external_id: Off-chain identifier of the campaign
            new_title: Replacement title
            new_description: Replacement description
        """
        key = campaign_key(external_id)
        campaign = self._load_campaign(key)

        assert Txn.sender == campaign.creator.native, "Only campaign creator can edit"
        assert not campaign.finalized.native, "Cannot edit finalized campaign"
        assert new_title.native.bytes.length > 0, "Title cannot be empty"
        assert new_title.native.bytes.length <= MAX_TITLE_LENGTH, "Title too long"
        assert new_description.native.bytes.length <= MAX_DESCRIPTION_LENGTH, "Description too long"

        campaign.title = new_title
        campaign.description = new_description

        # Record size changes with the text, so replace the box
        del self.campaigns[key]
        self.campaigns[key] = campaign.copy()

        arc4.emit(
            CampaignEdited(
                key=arc4.DynamicBytes(key),
                title=new_title,
                description=new_description,
            )
        )

    @arc4.abimethod(readonly=True)
    def get_campaign(self, external_id: arc4.String) -> Campaign:
        """
        Get campaign details by external identifier.

        Args:
            external_id: Off-chain identifier of the campaign

        Returns:
            Campaign record
        """
        return self._load_campaign(campaign_key(external_id))

    @arc4.abimethod(readonly=True)
    def get_campaign_by_key(self, key: Bytes) -> Campaign:
        return self._load_campaign(key)

    @arc4.abimethod(readonly=True)
    def get_campaign_key(self, external_id: arc4.String) -> Bytes:
        return campaign_key(external_id)

    @arc4.abimethod(readonly=True)
    def campaign_exists(self, external_id: arc4.String) -> arc4.Bool:
        return arc4.Bool(campaign_key(external_id) in self.campaigns)

    @arc4.abimethod(readonly=True)
    def get_campaign_count(self) -> arc4.UInt64:
        return arc4.UInt64(self.campaign_count.value)

    @arc4.abimethod(readonly=True)
    def get_creator_campaign_count(self, creator: arc4.Address) -> arc4.UInt64:
        return arc4.UInt64(self.creator_campaign_count.get(creator.native, default=UInt64(0)))

    @arc4.abimethod(readonly=True)
    def get_creator_campaigns(
        self,
        creator: arc4.Address,
        start: arc4.UInt64,
        limit: arc4.UInt64,
    ) -> arc4.DynamicArray[arc4.DynamicBytes]:
        """
        Page through the keys of campaigns created by an account.

        Args:
            creator: Creator address
            start: Index of the first key to return
            limit: Maximum number of keys to return, capped at CREATOR_PAGE_SIZE

        Returns:
            Campaign keys in creation order
        """
        total = self.creator_campaign_count.get(creator.native, default=UInt64(0))
        keys = arc4.DynamicArray[arc4.DynamicBytes]()
        if start.native >= total:
            return keys

        count = total - start.native
        if limit.native < count:
            count = limit.native
        if count > CREATOR_PAGE_SIZE:
            count = UInt64(CREATOR_PAGE_SIZE)

        for offset in urange(count):
            index = start.native + offset
            keys.append(arc4.DynamicBytes(self.creator_campaigns[creator.native.bytes + op.itob(index)]))
        return keys

    @arc4.abimethod(readonly=True)
    def get_campaign_deposit(self, creator: arc4.Address) -> arc4.UInt64:
        """Storage deposit the creator must send with create_campaign."""
        return arc4.UInt64(self._campaign_deposit(creator.native))

    @arc4.abimethod(readonly=True)
    def get_donation_deposit(self, external_id: arc4.String, donor: arc4.Address) -> arc4.UInt64:
        """
        Storage deposit added on top of a donor's first donation.

        Args:
            external_id: Off-chain identifier of the campaign
            donor: Donor address

        Returns:
            CONTRIBUTION_BOX_DEPOSIT before the first donation, 0 afterwards
        """
        if ledger_key(campaign_key(external_id), donor.native) in self.contributions:
            return arc4.UInt64(0)
        return arc4.UInt64(CONTRIBUTION_BOX_DEPOSIT)

    # Contribution ledger

    @arc4.abimethod
    def donate(
        self,
        external_id: arc4.String,
        payment: gtxn.PaymentTransaction,
    ) -> None:
        """
        Donate to a campaign.
        Must be called with a payment to the contract in the same group.
        A donor's first payment also carries CONTRIBUTION_BOX_DEPOSIT for
        their ledger box; only the remainder is recorded as the donation.

        Args:
            external_id: Off-chain identifier of the campaign
            payment: Payment transaction carrying the donation
        """
        key = campaign_key(external_id)
        campaign = self._load_campaign(key)

        assert payment.receiver == Global.current_application_address, "Payment must be sent to the contract"
        assert payment.sender == Txn.sender, "Payment must come from the caller"

        contribution_key = ledger_key(key, Txn.sender)
        first_donation = contribution_key not in self.contributions
        deposit = UInt64(0)
        if first_donation:
            deposit = UInt64(CONTRIBUTION_BOX_DEPOSIT)
        assert payment.amount > deposit, "Donation must be greater than 0"
        amount = payment.amount - deposit

        assert not campaign.finalized.native, "Campaign already finalized"
        assert Global.latest_timestamp <= campaign.deadline.native, "Campaign deadline passed"

        # Update the donor's running total
        if first_donation:
            campaign.donor_count = arc4.UInt64(campaign.donor_count.native + 1)
        contribution = self.contributions.get(contribution_key, default=UInt64(0)) + amount
        self.contributions[contribution_key] = contribution

        campaign.total_raised = arc4.UInt64(campaign.total_raised.native + amount)
        self.campaigns[key] = campaign.copy()

        self.leaderboards[key] = rank_donor(self.leaderboards[key], Txn.sender, contribution)

        arc4.emit(
            DonationReceived(
                key=arc4.DynamicBytes(key),
                donor=arc4.Address(Txn.sender),
                amount=arc4.UInt64(amount),
            )
        )

    @arc4.abimethod
    def claim_refund(self, external_id: arc4.String) -> None:
        """
        Claim a refund from a failed campaign.
        The whole contribution is returned and zeroed before the payment.

        Args:
            external_id: Off-chain identifier of the campaign
        """
        key = campaign_key(external_id)
        campaign = self._load_campaign(key)

        assert campaign.finalized.native, "Campaign not finalized"
        assert campaign.refund_enabled.native, "Refunds not enabled for this campaign"

        contribution_key = ledger_key(key, Txn.sender)
        amount = self.contributions.get(contribution_key, default=UInt64(0))
        assert amount > 0, "No contribution to refund"

        self.contributions[contribution_key] = UInt64(0)
        campaign.total_refunded = arc4.UInt64(campaign.total_refunded.native + amount)
        self.campaigns[key] = campaign.copy()

        assert_escrow_covers(amount)
        itxn.Payment(
            receiver=Txn.sender,
            amount=amount,
            fee=0,
        ).submit()

        arc4.emit(
            RefundIssued(
                key=arc4.DynamicBytes(key),
                donor=arc4.Address(Txn.sender),
                amount=arc4.UInt64(amount),
            )
        )

    @arc4.abimethod(readonly=True)
    def get_contribution(self, external_id: arc4.String, donor: arc4.Address) -> arc4.UInt64:
        """
        Get a donor's recorded contribution to a campaign.

        Args:
            external_id: Off-chain identifier of the campaign
            donor: Donor address

        Returns:
            Cumulative contribution (0 once refunded)
        """
        contribution_key = ledger_key(campaign_key(external_id), donor.native)
        return arc4.UInt64(self.contributions.get(contribution_key, default=UInt64(0)))

    # Lifecycle controller

    @arc4.abimethod
    def finalize_campaign(self, external_id: arc4.String) -> None:
        """
        Finalize a campaign after its deadline, or early once the goal is met.
        Pays the beneficiary on success, enables refunds otherwise.

        Callable by the creator, the beneficiary, or the owner while owner
        finalization is enabled. The outer transaction must cover the inner
        payment fee.

        Args:
            external_id: Off-chain identifier of the campaign
        """
        key = campaign_key(external_id)
        campaign = self._load_campaign(key)

        sender = Txn.sender
        is_party = sender == campaign.creator.native or sender == campaign.beneficiary.native
        is_platform = self.owner_can_finalize.value and sender == self.owner.value
        assert is_party or is_platform, "Caller not authorized to finalize"
        assert not campaign.finalized.native, "Campaign already finalized"

        total_raised = campaign.total_raised.native
        goal_met = total_raised >= campaign.goal_amount.native
        assert (
            Global.latest_timestamp > campaign.deadline.native or goal_met
        ), "Campaign deadline not reached and goal not met"

        campaign.finalized = arc4.Bool(True)
        campaign.refund_enabled = arc4.Bool(not goal_met)
        self.campaigns[key] = campaign.copy()

        if goal_met:
            assert_escrow_covers(total_raised)
            itxn.Payment(
                receiver=campaign.beneficiary.native,
                amount=total_raised,
                fee=0,
            ).submit()

        arc4.emit(
            CampaignFinalized(
                key=arc4.DynamicBytes(key),
                total_raised=arc4.UInt64(total_raised),
                success=arc4.Bool(goal_met),
                finalized_by=arc4.Address(sender),
            )
        )

    @arc4.abimethod
    def set_owner_finalize(self, enabled: arc4.Bool) -> None:
        """
        Allow or forbid owner finalization of campaigns.

        Args:
            enabled: New policy
        """
        assert Txn.sender == self.owner.value, "Only owner can change finalize policy"
        self.owner_can_finalize.value = enabled.native
        arc4.emit(OwnerFinalizeUpdated(owner=arc4.Address(Txn.sender), enabled=enabled))

    @arc4.abimethod
    def transfer_ownership(self, new_owner: arc4.Address) -> None:
        """
        Hand the owner role to another account.

        Args:
            new_owner: Address of the new owner
        """
        assert Txn.sender == self.owner.value, "Only owner can transfer ownership"
        assert new_owner.native != Global.zero_address, "Invalid owner address"
        self.owner.value = new_owner.native
        arc4.emit(OwnershipTransferred(previous_owner=arc4.Address(Txn.sender), new_owner=new_owner))

    # Donor leaderboard

    @arc4.abimethod(readonly=True)
    def get_top_donors(
        self,
        external_id: arc4.String,
        count: arc4.UInt64,
    ) -> tuple[arc4.DynamicArray[arc4.Address], arc4.DynamicArray[arc4.UInt64]]:
        """
        Get the top donors of a campaign, highest cumulative amount first.
        At most LEADERBOARD_SIZE donors are tracked.

        Args:
            external_id: Off-chain identifier of the campaign
            count: Maximum number of donors to return

        Returns:
            Tuple of (donor addresses, amounts)
        """
        key = campaign_key(external_id)
        assert key in self.leaderboards, "Campaign does not exist"
        board = self.leaderboards[key]

        limit = count.native
        if limit > LEADERBOARD_SIZE:
            limit = UInt64(LEADERBOARD_SIZE)

        donors = arc4.DynamicArray[arc4.Address]()
        amounts = arc4.DynamicArray[arc4.UInt64]()
        for index in urange(limit):
            offset = index * LEADERBOARD_ENTRY_SIZE
            amount = op.extract_uint64(board, offset + 32)
            if amount == 0:
                break
            donors.append(arc4.Address(op.extract(board, offset, 32)))
            amounts.append(arc4.UInt64(amount))
        return donors, amounts
