from enum import Enum
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union
from dataclasses import dataclass
from threading import RLock
import logging
import os


logger = logging.getLogger(__name__)


# ==================== Enums ====================

class PricingStrategyType(Enum):
    """Pricing model applied to every line of a checkout"""
    MULTI_BUY = "multi_buy"  # 3 for 130
    BUY_ONE_GET_ONE_FREE = "buy_one_get_one_free"
    PERCENTAGE_DISCOUNT = "percentage_discount"  # 10% off when buying 3+

    @classmethod
    def from_name(cls, name: str) -> 'PricingStrategyType':
        """Parse a member name or value, ignoring case"""
        if isinstance(name, str):
            normalized = name.strip().lower()
            for strategy_type in cls:
                if normalized in (strategy_type.value, strategy_type.name.lower()):
                    return strategy_type

        raise UnknownStrategyTypeError(name)


# ==================== Exceptions ====================

class CheckoutError(Exception):
    """Base class for all checkout errors"""
    pass


class InvalidPricingRuleError(CheckoutError, ValueError):
    """A pricing rule violates one of its invariants"""
    pass


class InvalidSkuError(CheckoutError, ValueError):
    """Scanned SKU text is empty or blank"""
    pass


class UnknownSkuError(CheckoutError, ValueError):
    """A scanned SKU has no pricing rule"""

    def __init__(self, sku: str):
        super().__init__(f"Unknown SKU '{sku}'. This item does not exist in the pricing rules.")
        self.sku = sku


class UnknownStrategyTypeError(CheckoutError, ValueError):
    """Strategy selector outside PricingStrategyType"""

    def __init__(self, strategy_type: object):
        super().__init__(f"Unknown strategy type: {strategy_type}")
        self.strategy_type = strategy_type


# ==================== Models ====================

def _require_int(field_name: str, value: object) -> None:
    # bool is an int subclass but never a price
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidPricingRuleError(
            f"{field_name} must be an integer, got {type(value).__name__}: {value!r}"
        )


@dataclass(frozen=True)
class PricingRule:
    """
    Price of a single SKU with an optional special offer.

    The meaning of the special fields depends on the active strategy:
    "special_quantity for special_price" under multi-buy, and
    "special_price percent off from special_quantity items" under
    percentage discount. Both fields are given together or not at all.
    """
    sku: str
    unit_price: int
    special_quantity: Optional[int] = None
    special_price: Optional[int] = None

    def __post_init__(self):
        # Order matters: the first violated check decides the message
        if self.sku is None or not str(self.sku).strip():
            raise InvalidPricingRuleError("SKU cannot be null or empty")

        _require_int("Unit price", self.unit_price)
        if self.unit_price <= 0:
            raise InvalidPricingRuleError("Unit price must be greater than zero")

        if (self.special_quantity is None) != (self.special_price is None):
            raise InvalidPricingRuleError(
                "Special quantity and special price must both be provided"
            )

        if self.special_quantity is None:
            return

        _require_int("Special quantity", self.special_quantity)
        if self.special_quantity <= 0:
            raise InvalidPricingRuleError("Special quantity must be greater than zero")

        _require_int("Special price", self.special_price)
        if self.special_price <= 0:
            raise InvalidPricingRuleError("Special price must be greater than zero")

        regular_price = self.get_regular_price(self.special_quantity)
        if self.special_price >= regular_price:
            raise InvalidPricingRuleError(
                f"Special price {self.special_price} for {self.special_quantity} items "
                f"must be less than the regular price {regular_price}"
            )

    def has_special_offer(self) -> bool:
        return self.special_quantity is not None and self.special_price is not None

    def get_regular_price(self, quantity: int) -> int:
        """Price of quantity items without any offer"""
        return quantity * self.unit_price


RuleDefinition = Sequence[Union[str, int, None]]


class RuleSet:
    """Read-only SKU -> PricingRule lookup shared by checkout sessions"""

    def __init__(self, rules: Iterable[PricingRule]):
        self._rules: Dict[str, PricingRule] = {}

        for rule in rules:
            if rule.sku in self._rules:
                raise InvalidPricingRuleError(f"Duplicate pricing rule for SKU '{rule.sku}'")
            self._rules[rule.sku] = rule

    @classmethod
    def from_definitions(cls, definitions: Iterable[RuleDefinition]) -> 'RuleSet':
        """
        Build a rule set from (sku, unit_price[, special_quantity, special_price])
        tuples, failing on the first invalid definition.
        """
        rules = []
        for definition in definitions:
            if not 2 <= len(definition) <= 4:
                raise InvalidPricingRuleError(
                    f"Rule definition must have 2 to 4 fields, got {len(definition)}: {definition!r}"
                )
            rules.append(PricingRule(*definition))
        return cls(rules)

    def get_rule(self, sku: str) -> Optional[PricingRule]:
        return self._rules.get(sku)

    def get_all_rules(self) -> List[PricingRule]:
        return list(self._rules.values())

    def get_skus(self) -> List[str]:
        return list(self._rules.keys())

    def __contains__(self, sku: object) -> bool:
        return sku in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[PricingRule]:
        return iter(self._rules.values())

    def __repr__(self) -> str:
        return f"RuleSet({', '.join(self._rules)})"


# ==================== Pricing Strategies ====================

class PricingStrategy(ABC):
    """Stateless price calculation for one line of the basket"""

    def calculate_price(self, quantity: int, unit_price: int,
                        special_quantity: Optional[int] = None,
                        special_price: Optional[int] = None) -> int:
        """Price of quantity items of one SKU"""
        if quantity < 0:
            raise ValueError(f"Quantity cannot be negative: {quantity}")

        if quantity == 0:
            return 0

        return self._price(quantity, unit_price, special_quantity, special_price)

    @abstractmethod
    def _price(self, quantity: int, unit_price: int,
               special_quantity: Optional[int],
               special_price: Optional[int]) -> int:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class UnitPricingStrategy(PricingStrategy):
    """Every item at unit price, offers ignored"""

    def _price(self, quantity, unit_price, special_quantity, special_price):
        return quantity * unit_price


class MultiBuyPricingStrategy(UnitPricingStrategy):
    """N for a fixed price, e.g. 3 for 130"""

    def _price(self, quantity, unit_price, special_quantity, special_price):
        if special_quantity is None or special_price is None:
            return super()._price(quantity, unit_price, special_quantity, special_price)

        # 5 items at "3 for 130", unit 50: 1 set (130) + 2 singles (100) = 230
        special_sets, remainder = divmod(quantity, special_quantity)
        return special_sets * special_price + remainder * unit_price


class BuyOneGetOneFreeStrategy(PricingStrategy):
    """Buy two, pay for one. Always active, special fields are ignored"""

    def _price(self, quantity, unit_price, special_quantity, special_price):
        paid_items = quantity // 2 + quantity % 2
        return paid_items * unit_price


class PercentageDiscountStrategy(PricingStrategy):
    """special_price percent off the line once special_quantity items are reached"""

    MAX_PERCENTAGE = 100

    def _price(self, quantity, unit_price, special_quantity, special_price):
        total = quantity * unit_price

        if special_quantity is None or special_price is None:
            return total

        if quantity < special_quantity:
            return total

        percentage = min(special_price, self.MAX_PERCENTAGE)
        # Multiply before dividing so truncation only happens once
        return total - (total * percentage) // 100


# ==================== Strategy Factory ====================

class PricingStrategyFactory:
    """
    Hands out one shared strategy instance per PricingStrategyType.

    The cache is filled once in __init__ and only read afterwards, so
    concurrent lookups need no locking.
    """

    def __init__(self):
        self._strategies: Dict[PricingStrategyType, PricingStrategy] = {
            PricingStrategyType.MULTI_BUY: MultiBuyPricingStrategy(),
            PricingStrategyType.BUY_ONE_GET_ONE_FREE: BuyOneGetOneFreeStrategy(),
            PricingStrategyType.PERCENTAGE_DISCOUNT: PercentageDiscountStrategy(),
        }

    def get_strategy(self, strategy_type: PricingStrategyType) -> PricingStrategy:
        """Get the cached strategy for a type"""
        if not isinstance(strategy_type, PricingStrategyType):
            raise UnknownStrategyTypeError(strategy_type)

        strategy = self._strategies.get(strategy_type)
        if strategy is None:
            raise UnknownStrategyTypeError(strategy_type)

        return strategy

    def get_supported_types(self) -> List[PricingStrategyType]:
        return list(self._strategies.keys())


# ==================== Pricing Service ====================

class PricingService:
    """Sums line prices of scanned items using one pricing strategy"""

    def __init__(self, pricing_strategy: PricingStrategy):
        self._strategy = pricing_strategy

    def get_strategy(self) -> PricingStrategy:
        return self._strategy

    def calculate_total(self, scanned_items: Dict[str, int],
                        rules: Union[RuleSet, Iterable[PricingRule]]) -> int:
        """
        Calculate the basket total.

        Args:
            scanned_items: SKU -> scanned count
            rules: RuleSet, or any iterable of PricingRule (duplicates rejected)

        Raises:
            UnknownSkuError: If a scanned SKU has no pricing rule
        """
        rule_set = rules if isinstance(rules, RuleSet) else RuleSet(rules)

        total = 0
        for sku, quantity in scanned_items.items():
            rule = rule_set.get_rule(sku)
            if rule is None:
                raise UnknownSkuError(sku)

            line_price = self._strategy.calculate_price(
                quantity,
                rule.unit_price,
                rule.special_quantity,
                rule.special_price,
            )
            logger.debug("Line %s x%d = %d (%r)", sku, quantity, line_price, self._strategy)
            total += line_price

        return total


# ==================== Checkout ====================

class Checkout:
    """
    Checkout session: accumulates scans and prices them on demand.

    Unknown SKUs are accepted by scan() and only rejected when the total
    is requested.
    """

    def __init__(self, rules: Union[RuleSet, Iterable[PricingRule]], pricing_service: PricingService):
        self._rules = rules if isinstance(rules, RuleSet) else RuleSet(rules)
        self._pricing_service = pricing_service
        self._scanned_items: Dict[str, int] = {}
        self._lock = RLock()

    def scan(self, sku: str) -> None:
        """Register one item"""
        if sku is None or (isinstance(sku, str) and not sku.strip()):
            raise InvalidSkuError("SKU cannot be null or empty")

        if not isinstance(sku, str):
            raise InvalidSkuError(f"SKU must be a string, got {type(sku).__name__}: {sku!r}")

        with self._lock:
            self._scanned_items[sku] = self._scanned_items.get(sku, 0) + 1
            logger.debug("Scanned %s (count=%d)", sku, self._scanned_items[sku])

    def get_total_price(self) -> int:
        """Total of everything scanned so far"""
        with self._lock:
            return self._pricing_service.calculate_total(self._scanned_items, self._rules)

    def get_scanned_items(self) -> Dict[str, int]:
        with self._lock:
            return self._scanned_items.copy()

    def get_item_count(self) -> int:
        with self._lock:
            return sum(self._scanned_items.values())

    def get_rules(self) -> RuleSet:
        return self._rules

    def get_pricing_service(self) -> PricingService:
        return self._pricing_service


# ==================== Configuration ====================

@dataclass
class CheckoutConfig:
    """Checkout settings; strategy can be picked via CHECKOUT_PRICING_STRATEGY"""
    strategy_type: PricingStrategyType = PricingStrategyType.MULTI_BUY

    @classmethod
    def from_env(cls, prefix: str = "CHECKOUT_") -> 'CheckoutConfig':
        value = os.environ.get(f"{prefix}PRICING_STRATEGY")
        if value is None or not value.strip():
            return cls()
        return cls(strategy_type=PricingStrategyType.from_name(value))


_default_factory = PricingStrategyFactory()


def create_checkout(rules: Union[RuleSet, Iterable[PricingRule]],
                    strategy_type: PricingStrategyType = PricingStrategyType.MULTI_BUY,
                    factory: Optional[PricingStrategyFactory] = None) -> Checkout:
    """Wire a new checkout session: strategy -> pricing service -> checkout"""
    factory = factory or _default_factory
    strategy = factory.get_strategy(strategy_type)
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet(rules)

    logger.info("Creating checkout with %s pricing for %d SKUs", strategy_type.value, len(rule_set))
    return Checkout(rule_set, PricingService(strategy))


def create_checkout_from_config(rules: Union[RuleSet, Iterable[PricingRule]],
                                config: Optional[CheckoutConfig] = None) -> Checkout:
    config = config or CheckoutConfig.from_env()
    return create_checkout(rules, config.strategy_type)


# ==================== Demo ====================

def print_section(title: str) -> None:
    """Print section header"""
    print(f"\n{'=' * 70}")
    print(f" {title}")
    print('=' * 70)


def create_sample_rules() -> RuleSet:
    """Classic kata price list"""
    return RuleSet.from_definitions([
        ("A", 50, 3, 130),
        ("B", 30, 2, 45),
        ("C", 20),
        ("D", 15),
    ])


def scan_all(checkout: Checkout, skus: str) -> int:
    for sku in skus:
        checkout.scan(sku)
    return checkout.get_total_price()


def main():
    rules = create_sample_rules()

    print_section("PRICE LIST")
    for rule in rules:
        offer = (f"{rule.special_quantity} for {rule.special_price}"
                 if rule.has_special_offer() else "-")
        print(f"  {rule.sku}: {rule.unit_price:>4}   offer: {offer}")

    print_section("MULTI-BUY")
    for basket in ["", "A", "AA", "AAA", "AAAA", "AAABBD", "DABABA"]:
        total = scan_all(create_checkout(rules), basket)
        print(f"  {basket or '(empty)':<8} -> {total}")

    print_section("BUY ONE GET ONE FREE")
    for basket in ["A", "AA", "AAA", "AAAA", "AAAAA"]:
        total = scan_all(create_checkout(rules, PricingStrategyType.BUY_ONE_GET_ONE_FREE), basket)
        print(f"  {basket:<8} -> {total}")

    print_section("PERCENTAGE DISCOUNT")
    percentage_rules = RuleSet([PricingRule("A", 50, 3, 10)])
    for basket in ["AA", "AAA", "AAAAA"]:
        checkout = create_checkout(percentage_rules, PricingStrategyType.PERCENTAGE_DISCOUNT)
        print(f"  {basket:<8} -> {scan_all(checkout, basket)}")

    print_section("ERRORS")
    checkout = create_checkout(rules)
    checkout.scan("Z")
    try:
        checkout.get_total_price()
    except UnknownSkuError as e:
        print(f"  ❌ {e}")

    try:
        checkout.scan("   ")
    except InvalidSkuError as e:
        print(f"  ❌ {e}")

    try:
        PricingRule("A", 50, 3, 200)
    except InvalidPricingRuleError as e:
        print(f"  ❌ {e}")

    print_section("DEMO COMPLETE")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    main()


# Key Design Decisions:
# 1. Strategy Pattern:
# One PricingStrategy subclass per pricing model
# Template method validates quantity, subclasses only do arithmetic
# Multi-buy falls back to unit pricing when a rule has no offer
# 2. Factory + cache:
# One shared, stateless instance per PricingStrategyType
# Filled once at construction, read-only afterwards
# 3. Value objects:
# PricingRule is a frozen dataclass validated in __post_init__
# RuleSet rejects duplicate SKUs
# 4. Plain constructor wiring:
# create_checkout() builds strategy -> service -> checkout per session
# 5. Error handling:
# Typed errors (all ValueError subclasses) raised to the caller
# Unknown SKUs are detected at total time, blank SKUs at scan time
# 6. Thread Safety:
# Strategies, rules and factory are immutable after construction
# RLock around the per-session scan tally
