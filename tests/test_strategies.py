"""Pricing strategies and the strategy factory."""

import threading

import pytest

from checkout_kata import (
    BuyOneGetOneFreeStrategy,
    MultiBuyPricingStrategy,
    PercentageDiscountStrategy,
    PricingStrategyFactory,
    PricingStrategyType,
    UnitPricingStrategy,
    UnknownStrategyTypeError,
)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class TestUnitFallback:
    @pytest.mark.parametrize("strategy", [
        UnitPricingStrategy(),
        MultiBuyPricingStrategy(),
        PercentageDiscountStrategy(),
    ])
    @pytest.mark.parametrize("quantity", [0, 1, 2, 7])
    def test_without_offer_charges_unit_price(self, strategy, quantity):
        assert strategy.calculate_price(quantity, 35) == quantity * 35

    def test_unit_ignores_offer(self):
        assert UnitPricingStrategy().calculate_price(3, 50, 3, 130) == 150

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            MultiBuyPricingStrategy().calculate_price(-1, 50, 3, 130)


class TestMultiBuy:
    @pytest.mark.parametrize("quantity, expected", [
        (0, 0), (1, 50), (2, 100), (3, 130), (4, 180), (5, 230), (6, 260),
    ])
    def test_three_for_130(self, quantity, expected):
        assert MultiBuyPricingStrategy().calculate_price(quantity, 50, 3, 130) == expected


class TestBuyOneGetOneFree:
    @pytest.mark.parametrize("quantity, expected", [
        (0, 0), (1, 50), (2, 50), (3, 100), (4, 100), (5, 150),
    ])
    def test_pay_for_every_other_item(self, quantity, expected):
        assert BuyOneGetOneFreeStrategy().calculate_price(quantity, 50) == expected

    def test_ignores_rule_offer(self):
        strategy = BuyOneGetOneFreeStrategy()
        assert strategy.calculate_price(4, 50, 3, 130) == strategy.calculate_price(4, 50)


class TestPercentageDiscount:
    def test_below_threshold_full_price(self):
        assert PercentageDiscountStrategy().calculate_price(2, 50, 3, 10) == 100

    def test_at_threshold_discounted(self):
        assert PercentageDiscountStrategy().calculate_price(3, 50, 3, 10) == 135

    def test_above_threshold_discounted(self):
        assert PercentageDiscountStrategy().calculate_price(5, 50, 3, 20) == 200

    def test_truncates_after_multiplying(self):
        # 3 x 33 = 99, 15% of 99 = 14.85 -> 14
        assert PercentageDiscountStrategy().calculate_price(3, 33, 3, 15) == 85

    def test_percentage_capped_at_100(self):
        assert PercentageDiscountStrategy().calculate_price(3, 50, 3, 120) == 0


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

class TestPricingStrategyFactory:
    @pytest.mark.parametrize("strategy_type, strategy_class", [
        (PricingStrategyType.MULTI_BUY, MultiBuyPricingStrategy),
        (PricingStrategyType.BUY_ONE_GET_ONE_FREE, BuyOneGetOneFreeStrategy),
        (PricingStrategyType.PERCENTAGE_DISCOUNT, PercentageDiscountStrategy),
    ])
    def test_returns_matching_strategy(self, strategy_type, strategy_class):
        assert type(PricingStrategyFactory().get_strategy(strategy_type)) is strategy_class

    def test_same_instance_on_repeated_calls(self):
        factory = PricingStrategyFactory()
        first = factory.get_strategy(PricingStrategyType.MULTI_BUY)
        second = factory.get_strategy(PricingStrategyType.MULTI_BUY)
        assert first is second

    @pytest.mark.parametrize("strategy_type", [999, "multi_buy", None])
    def test_unknown_type_rejected(self, strategy_type):
        with pytest.raises(UnknownStrategyTypeError, match="Unknown strategy type"):
            PricingStrategyFactory().get_strategy(strategy_type)

    def test_supported_types(self):
        assert set(PricingStrategyFactory().get_supported_types()) == set(PricingStrategyType)

    def test_concurrent_lookups_share_instance(self):
        factory = PricingStrategyFactory()
        seen = []

        def lookup():
            for _ in range(100):
                seen.append(factory.get_strategy(PricingStrategyType.PERCENTAGE_DISCOUNT))

        threads = [threading.Thread(target=lookup) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(seen) == 400
        assert all(strategy is seen[0] for strategy in seen)


class TestPricingStrategyType:
    @pytest.mark.parametrize("name, expected", [
        ("multi_buy", PricingStrategyType.MULTI_BUY),
        ("BUY_ONE_GET_ONE_FREE", PricingStrategyType.BUY_ONE_GET_ONE_FREE),
        ("  Percentage_Discount ", PricingStrategyType.PERCENTAGE_DISCOUNT),
    ])
    def test_from_name(self, name, expected):
        assert PricingStrategyType.from_name(name) is expected

    @pytest.mark.parametrize("name", ["three_for_two", "", 1])
    def test_from_name_unknown(self, name):
        with pytest.raises(UnknownStrategyTypeError):
            PricingStrategyType.from_name(name)
