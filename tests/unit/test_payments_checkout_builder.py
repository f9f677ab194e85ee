import pytest

from storefront.cart.models import CartItem
from storefront.payments import (
    CheckoutSessionBuilder,
    EmptyCartError,
    MissingPriceError,
    MissingProductError,
    SessionCreationError,
    SessionLookupError,
)
from storefront.payments.checkout import METADATA_VALUE_MAX, make_metadata
from storefront.payments.fees import FEE_LINE_NAME
from storefront.payments.models import ProductIn
from storefront.payments.stripe_client import to_stripe_line_item

SUCCESS = "http://localhost:8000/checkout/success?session_id={CHECKOUT_SESSION_ID}"
CANCEL = "http://localhost:8000/checkout/cancel"


@pytest.fixture()
def builder(provider):
    return CheckoutSessionBuilder(provider, success_url=SUCCESS, cancel_url=CANCEL)


def _cart():
    return [
        CartItem(id="p1", name="Ebook", price=2500, quantity=2, image="https://cdn.test/ebook.png"),
        CartItem(id="p2", name="Cours vidéo", price=5000, quantity=1, description="10h de vidéo"),
    ]


def test_one_time_checkout_appends_fee_line_last(builder):
    request = builder.build_one_time_checkout(_cart())

    assert request.mode == "payment"
    assert len(request.line_items) == 3
    fee_line = request.line_items[-1]
    assert request.fee_line is fee_line
    assert fee_line.name == FEE_LINE_NAME
    assert fee_line.unit_amount == 500
    assert fee_line.quantity == 1
    assert fee_line.recurring is False


def test_one_time_checkout_maps_items_one_to_one(builder):
    request = builder.build_one_time_checkout(_cart())

    products = request.line_items[:-1]
    assert [(li.name, li.unit_amount, li.quantity) for li in products] == [
        ("Ebook", 2500, 2),
        ("Cours vidéo", 5000, 1),
    ]
    assert products[0].metadata == {"product_id": "p1"}
    assert products[0].images == ["https://cdn.test/ebook.png"]
    assert request.metadata == {"product_ids": "p1,p2"}
    assert request.success_url == SUCCESS
    assert request.cancel_url == CANCEL


def test_one_time_checkout_empty_cart_raises(builder, provider):
    with pytest.raises(EmptyCartError) as exc:
        builder.checkout_cart([])
    assert exc.value.message == "Cart is empty"
    assert provider.requests == []


def test_subscription_checkout_has_exactly_two_lines(builder):
    request = builder.build_subscription_checkout(
        ProductIn(id="plan_pro", name="Pro", price=2000), price_id="price_pro_monthly"
    )

    assert request.mode == "subscription"
    assert len(request.line_items) == 2
    recurring, fee_line = request.line_items
    assert recurring.price_id == "price_pro_monthly"
    assert recurring.quantity == 1
    assert recurring.recurring is True
    assert fee_line.name == FEE_LINE_NAME
    assert fee_line.unit_amount == 100
    assert fee_line.recurring is False
    assert request.metadata == {"product_id": "plan_pro"}


def test_subscription_fee_uses_list_price_not_billed_price(builder):
    # Le prix Stripe "price_pro_4900" facture 4900/mois; le prix catalogue reste 2000
    request = builder.build_subscription_checkout(
        ProductIn(id="plan_pro", name="Pro", price=2000), price_id="price_pro_4900"
    )

    recurring, fee_line = request.line_items
    assert recurring.unit_amount is None
    assert to_stripe_line_item(recurring, "usd") == {"price": "price_pro_4900", "quantity": 1}
    assert fee_line.unit_amount == 100
    assert fee_line.unit_amount != 245  # 5% de 4900


def test_subscription_checkout_missing_product_raises(builder):
    with pytest.raises(MissingProductError):
        builder.build_subscription_checkout(None, price_id="price_1")
    with pytest.raises(MissingProductError):
        builder.build_subscription_checkout(ProductIn(id="", price=100), price_id="price_1")


def test_subscription_checkout_missing_price_raises(builder):
    with pytest.raises(MissingPriceError):
        builder.build_subscription_checkout(ProductIn(id="plan", price=100), price_id=None)


def test_checkout_cart_returns_session_and_customer(builder, provider):
    session = builder.checkout_cart(_cart(), customer_id="cus_123")

    assert session.session_id == "cs_test_1"
    assert session.url.startswith("https://example.test/checkout/")
    assert provider.requests[0].customer_id == "cus_123"


def test_provider_failure_becomes_session_creation_error(builder, provider):
    provider.fail_with = RuntimeError("card_declined")

    with pytest.raises(SessionCreationError) as exc:
        builder.checkout_cart(_cart())

    assert exc.value.status_code == 502
    assert "card_declined" in exc.value.message


def test_get_checkout_session(builder, provider):
    session = builder.checkout_cart(_cart())
    assert builder.get_checkout_session(session.session_id)["mode"] == "payment"

    with pytest.raises(SessionLookupError):
        builder.get_checkout_session("")
    with pytest.raises(SessionLookupError):
        builder.get_checkout_session("cs_unknown")


def test_metadata_is_truncated_on_whole_ids(caplog):
    items = [CartItem(id=f"product-{i:04d}", name="x", price=1) for i in range(100)]
    all_ids = {item.id for item in items}

    with caplog.at_level("WARNING"):
        value = make_metadata(items)["product_ids"]

    assert len(value) <= METADATA_VALUE_MAX
    kept = value.split(",")
    # 12 caractères par id + virgule: 38 ids entiers tiennent dans 500
    assert len(kept) == 38
    assert all(product_id in all_ids for product_id in kept)
    assert "metadata truncated" in caplog.text


def test_metadata_within_limit_is_complete(caplog):
    items = [CartItem(id="p1", name="x", price=1), CartItem(id="p2", name="y", price=1)]

    with caplog.at_level("WARNING"):
        assert make_metadata(items) == {"product_ids": "p1,p2"}

    assert "metadata truncated" not in caplog.text


def test_to_stripe_line_item_shapes():
    request_builder = CheckoutSessionBuilder(provider=None, success_url=SUCCESS, cancel_url=CANCEL)
    request = request_builder.build_subscription_checkout(
        ProductIn(id="plan", name="Plan", price=2000), price_id="price_1"
    )

    recurring = to_stripe_line_item(request.line_items[0], "usd")
    fee = to_stripe_line_item(request.line_items[1], "usd")

    assert recurring == {"price": "price_1", "quantity": 1}
    assert fee["quantity"] == 1
    assert fee["price_data"]["currency"] == "usd"
    assert fee["price_data"]["unit_amount"] == 100
    assert fee["price_data"]["product_data"]["name"] == "Transaction Fee (5%)"
    # Pas de 'recurring' => paiement unique
    assert "recurring" not in fee["price_data"]
