import pytest

from freightfloo.core.errors import AmountMismatchError, ValidationError
from freightfloo.services.pricing import PricingContext, evaluate_bid, require_valid_bid

AUCTION = PricingContext("auction", starting_bid=1000.0)
OFFER = PricingContext("offer", offer_price=500.0)


class TestAuctionPricing:

    def test_first_bid_must_be_strictly_below_starting_price(self):
        result = evaluate_bid(1000.0, AUCTION)
        assert not result.accepted
        assert "lower than starting price of $1,000.00" in result.reason

        assert evaluate_bid(999.0, AUCTION).accepted

    @pytest.mark.parametrize("amount", [1000.0, 1000.01, 5000.0])
    def test_amount_at_or_above_starting_price_rejected(self, amount):
        assert not evaluate_bid(amount, AUCTION).accepted

    def test_new_bid_must_undercut_lowest_pending_by_twenty(self):
        result = evaluate_bid(890.0, AUCTION, [900.0])
        assert not result.accepted
        assert result.ceiling == 880.0
        assert "$900.00" in result.reason
        assert "maximum $880.00" in result.reason

        assert evaluate_bid(880.0, AUCTION, [900.0]).accepted

    def test_lowest_of_several_pending_bids_sets_the_ceiling(self):
        assert not evaluate_bid(860.0, AUCTION, [950.0, 870.0, 900.0]).accepted
        assert evaluate_bid(850.0, AUCTION, [950.0, 870.0, 900.0]).accepted

    def test_custom_decrement(self):
        assert not evaluate_bid(860.0, AUCTION, [900.0], min_decrement=50).accepted
        assert evaluate_bid(850.0, AUCTION, [900.0], min_decrement=50).accepted

    @pytest.mark.parametrize("amount", [0, -10.0])
    def test_non_positive_amount_rejected(self, amount):
        assert not evaluate_bid(amount, AUCTION).accepted

    def test_missing_starting_price(self):
        assert not evaluate_bid(100.0, PricingContext("auction")).accepted

    def test_unknown_pricing_type(self):
        assert not evaluate_bid(100.0, PricingContext("barter", starting_bid=1000.0)).accepted


class TestOfferPricing:

    def test_exact_price_is_an_immediate_acceptance(self):
        result = evaluate_bid(500.0, OFFER)
        assert result.accepted
        assert result.auto_accept

    def test_any_other_amount_is_a_mismatch(self):
        for amount in (450.0, 499.99, 500.01, 600.0):
            result = evaluate_bid(amount, OFFER)
            assert not result.accepted
            assert result.mismatch

    def test_pending_bids_do_not_matter_for_offers(self):
        assert evaluate_bid(500.0, OFFER, [490.0]).accepted


class TestRequireValidBid:

    def test_offer_mismatch_raises_amount_mismatch(self):
        with pytest.raises(AmountMismatchError) as exc:
            require_valid_bid(450.0, OFFER)
        assert exc.value.details == {"expected": 500.0, "received": 450.0}
        assert exc.value.code == "AMOUNT_MISMATCH"

    def test_auction_violation_raises_validation_error_with_ceiling(self):
        with pytest.raises(ValidationError) as exc:
            require_valid_bid(890.0, AUCTION, [900.0])
        assert not isinstance(exc.value, AmountMismatchError)
        assert exc.value.details["ceiling"] == 880.0

    def test_valid_bid_returns_evaluation(self):
        assert require_valid_bid(880.0, AUCTION, [900.0]).accepted
