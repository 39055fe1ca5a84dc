"""
Tests for refunds from CharityCampaignFactory

Tests cover:
- Refund of a failed campaign
- No double refund
- Rejections (successful campaign, non-contributor, not finalized)
- Ledger invariant after refunds
- Escrow balance check before refund
- Refund events
"""

import pytest
from algopy import arc4
from algopy_testing import AlgopyTestContext

from contracts.charity_campaigns.contract import RefundIssued


class TestRefunds:
    """Test suite for claim_refund."""

    @pytest.fixture(autouse=True)
    def campaign(self, create_campaign):
        create_campaign("uuid-1", goal=10, duration_days=30)

    @pytest.fixture
    def donor(self, context: AlgopyTestContext):
        return context.any.account()

    def test_refund_failed_campaign(self, contract, donate, set_time, after_deadline, finalize, claim_refund, donor, context: AlgopyTestContext):
        """Test a donor gets exactly their contribution back, once."""
        # Arrange
        donate("uuid-1", donor, 3)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act
        claim_refund("uuid-1", donor)

        # Assert
        refund = context.txn.last_group.last_itxn.payment
        assert refund.receiver == donor
        assert refund.amount == 3
        assert contract.get_contribution(arc4.String("uuid-1"), arc4.Address(donor)).native == 0

        with pytest.raises(AssertionError, match="No contribution to refund"):
            claim_refund("uuid-1", donor)

    def test_refund_covers_repeat_donations(self, donate, set_time, after_deadline, finalize, claim_refund, donor, context: AlgopyTestContext):
        """Test the refund is the cumulative contribution."""
        # Arrange
        donate("uuid-1", donor, 2)
        donate("uuid-1", donor, 5)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act
        claim_refund("uuid-1", donor)

        # Assert
        assert context.txn.last_group.last_itxn.payment.amount == 7

    def test_reject_refund_for_successful_campaign(self, donate, set_time, after_deadline, finalize, claim_refund, donor):
        """Test refunds stay closed when the goal was met."""
        # Arrange
        donate("uuid-1", donor, 12)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act & Assert
        with pytest.raises(AssertionError, match="Refunds not enabled for this campaign"):
            claim_refund("uuid-1", donor)

    def test_reject_refund_for_non_contributor(self, donate, set_time, after_deadline, finalize, claim_refund, donor, context: AlgopyTestContext):
        """Test accounts that never donated get nothing."""
        # Arrange
        donate("uuid-1", donor, 3)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act & Assert
        with pytest.raises(AssertionError, match="No contribution to refund"):
            claim_refund("uuid-1", context.any.account())

    def test_reject_refund_before_finalization(self, donate, set_time, after_deadline, claim_refund, donor):
        """Test refunds wait for finalization even after the deadline."""
        # Arrange
        donate("uuid-1", donor, 3)
        set_time(after_deadline)

        # Act & Assert
        with pytest.raises(AssertionError, match="Campaign not finalized"):
            claim_refund("uuid-1", donor)

    def test_reject_refund_unknown_campaign(self, claim_refund, donor):
        """Test refunding from a campaign that does not exist."""
        with pytest.raises(AssertionError, match="Campaign does not exist"):
            claim_refund("non-existent-uuid", donor)

    def test_ledger_balances_after_refunds(self, contract, donate, set_time, after_deadline, finalize, claim_refund, context: AlgopyTestContext):
        """Test raised minus refunded always equals recorded contributions."""
        # Arrange
        donors = [context.any.account() for _ in range(3)]
        for donor, amount in zip(donors, [1, 2, 4]):
            donate("uuid-1", donor, amount)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act
        claim_refund("uuid-1", donors[1])

        # Assert
        campaign = contract.get_campaign(arc4.String("uuid-1"))
        recorded = [
            contract.get_contribution(arc4.String("uuid-1"), arc4.Address(donor)).native
            for donor in donors
        ]
        assert recorded == [1, 0, 4]
        assert campaign.total_raised.native == 7
        assert campaign.total_refunded.native == 2
        assert campaign.total_raised.native - campaign.total_refunded.native == 5

        claim_refund("uuid-1", donors[0])
        claim_refund("uuid-1", donors[2])
        campaign = contract.get_campaign(arc4.String("uuid-1"))
        assert campaign.total_refunded.native == campaign.total_raised.native
        assert campaign.finalized.native

    def test_reject_refund_beyond_escrow(self, contract, donate, set_time, after_deadline, finalize, claim_refund, set_escrow, donor):
        """Test a refund cannot dip into the application's minimum balance."""
        # Arrange
        donate("uuid-1", donor, 3)
        set_time(after_deadline)
        finalize("uuid-1")
        set_escrow(2)

        # Act & Assert
        with pytest.raises(AssertionError, match="Insufficient escrow balance"):
            claim_refund("uuid-1", donor)

    def test_refund_event(self, contract, donate, set_time, after_deadline, finalize, claim_refund, emitted, donor):
        """Test a refund logs the campaign, the donor and the amount."""
        # Arrange
        donate("uuid-1", donor, 2)
        donate("uuid-1", donor, 5)
        set_time(after_deadline)
        finalize("uuid-1")

        # Act
        claim_refund("uuid-1", donor)

        # Assert
        events = emitted(RefundIssued)
        assert len(events) == 1
        assert events[0].key.native == contract.get_campaign_key(arc4.String("uuid-1"))
        assert events[0].donor.native == donor
        assert events[0].amount.native == 7
