"""
Pytest configuration and fixtures for GuraNeza tests.
Provides reusable factories, authenticated API clients and common test data.
"""
import os
import sys
from decimal import Decimal

import django
import factory
import pytest
from factory.django import DjangoModelFactory
from faker import Faker

# Add the backend directory to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Configure Django settings before any model imports
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'guraneza.settings.test')
django.setup()

from rest_framework.test import APIClient  # noqa: E402

from apps.core.models import User, Address  # noqa: E402
from apps.sellers.models import SellerProfile, SellerRequest  # noqa: E402
from apps.products.models import Product, Review  # noqa: E402
from apps.orders.models import Order, OrderItem, ShippingSetting  # noqa: E402

fake = Faker()

TEST_PASSWORD = 'testpass123'


def rw_phone():
    """Rwandan MSISDN without the plus sign."""
    return f"25078{fake.numerify('#######')}"


# ==================== Factory Classes ====================

class UserFactory(DjangoModelFactory):
    """Factory for verified, active customer accounts."""

    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'user{n}@example.com')
    username = factory.LazyAttribute(lambda o: o.email)
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    phone = factory.LazyAttribute(lambda _: rw_phone())
    role = User.ROLE_CUSTOMER
    status = User.STATUS_ACTIVE
    is_verified = True
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        if not create:
            return
        self.set_password(extracted or TEST_PASSWORD)
        self.save()


class AddressFactory(DjangoModelFactory):

    class Meta:
        model = Address

    user = factory.SubFactory(UserFactory)
    full_name = factory.Faker('name')
    phone = factory.LazyAttribute(lambda _: rw_phone())
    street = factory.Faker('street_address')
    city = 'Kigali'
    label = 'Home'
    is_default = False


class SellerProfileFactory(DjangoModelFactory):
    """Factory for active stores; pass approval_status to change that."""

    class Meta:
        model = SellerProfile

    user = factory.SubFactory(UserFactory, role=User.ROLE_SELLER)
    store_name = factory.Sequence(lambda n: f'Store {n}')
    description = factory.Faker('sentence')
    phone = factory.LazyAttribute(lambda _: rw_phone())
    approval_status = SellerProfile.STATUS_ACTIVE


class SellerRequestFactory(DjangoModelFactory):

    class Meta:
        model = SellerRequest

    user = factory.SubFactory(UserFactory)
    store_name = factory.Sequence(lambda n: f'Requested Store {n}')
    store_description = 'Handmade baskets from Huye and Nyanza'
    phone = factory.LazyAttribute(lambda _: rw_phone())
    status = SellerRequest.STATUS_PENDING


class ProductFactory(DjangoModelFactory):

    class Meta:
        model = Product

    seller = factory.LazyAttribute(lambda _: SellerProfileFactory().user)
    name = factory.Sequence(lambda n: f'Product {n}')
    description = factory.Faker('text', max_nb_chars=200)
    price = Decimal('10000.00')
    category = 'Electronics'
    stock = 20
    image_url = factory.Faker('image_url')
    is_active = True


class ReviewFactory(DjangoModelFactory):

    class Meta:
        model = Review

    product = factory.SubFactory(ProductFactory)
    user = factory.SubFactory(UserFactory)
    rating = 4
    comment = factory.Faker('sentence')


class ShippingSettingFactory(DjangoModelFactory):

    class Meta:
        model = ShippingSetting

    city = factory.Sequence(lambda n: f'City {n}')
    fee = Decimal('3000.00')
    is_default = False
    is_active = True


class OrderFactory(DjangoModelFactory):
    """Factory for orders; amounts are not derived from items."""

    class Meta:
        model = Order

    customer = factory.SubFactory(UserFactory)
    subtotal = Decimal('20000.00')
    shipping_fee = Decimal('2000.00')
    total_price = Decimal('22000.00')
    payment_method = Order.METHOD_MOMO
    payment_status = Order.PAYMENT_PENDING
    order_status = Order.STATUS_PENDING
    shipping_full_name = factory.Faker('name')
    shipping_phone = factory.LazyAttribute(lambda _: rw_phone())
    shipping_city = 'Kigali'
    shipping_address_line = factory.Faker('street_address')

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        """Allow an explicit created_at despite auto_now_add."""
        custom_created_at = kwargs.pop('created_at', None)

        obj = model_class(*args, **kwargs)
        obj.save()

        if custom_created_at is not None:
            model_class.objects.filter(pk=obj.pk).update(
                created_at=custom_created_at)
            obj.refresh_from_db()

        return obj


class OrderItemFactory(DjangoModelFactory):

    class Meta:
        model = OrderItem

    order = factory.SubFactory(OrderFactory)
    product = factory.SubFactory(ProductFactory)
    seller = factory.LazyAttribute(lambda o: o.product.seller)
    product_name = factory.LazyAttribute(lambda o: o.product.name)
    quantity = 2
    price_at_purchase = factory.LazyAttribute(lambda o: o.product.price)


# ==================== Helpers ====================

def make_seller(approval_status=SellerProfile.STATUS_ACTIVE, **user_kwargs):
    """Seller user with a store in the given state."""
    user = UserFactory(role=User.ROLE_SELLER, **user_kwargs)
    SellerProfileFactory(user=user, approval_status=approval_status)
    return user


def delivered_order_for(customer, product, quantity=1):
    """A delivered order of the product, which unlocks reviewing it."""
    order = OrderFactory(
        customer=customer,
        order_status=Order.STATUS_DELIVERED,
        payment_status=Order.PAYMENT_PAID,
        shipping_status=Order.SHIPPING_DELIVERED
    )
    OrderItemFactory(order=order, product=product, quantity=quantity)
    return order


# ==================== Pytest Fixtures ====================

@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def customer(db):
    return UserFactory()


@pytest.fixture
def seller(db):
    return make_seller()


@pytest.fixture
def pending_seller(db):
    return make_seller(approval_status=SellerProfile.STATUS_PENDING)


@pytest.fixture
def admin_user(db):
    return UserFactory(role=User.ROLE_ADMIN, is_staff=True)


@pytest.fixture
def product(db, seller):
    return ProductFactory(seller=seller, price=Decimal('10000.00'), stock=10)


@pytest.fixture
def kigali_rate(db):
    return ShippingSettingFactory(city='Kigali', fee=Decimal('2000.00'), is_default=True)


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user)
    return client


@pytest.fixture
def customer_client(customer):
    return _client_for(customer)


@pytest.fixture
def seller_client(seller):
    return _client_for(seller)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


# ==================== Service Fixtures ====================

@pytest.fixture
def auth_service():
    from apps.core.services.auth_service import AuthService
    return AuthService()


@pytest.fixture
def cart_service():
    from apps.orders.services.cart_service import CartService
    return CartService()


@pytest.fixture
def order_service():
    from apps.orders.services.order_service import OrderService
    return OrderService()


@pytest.fixture
def shipping_service():
    from apps.orders.services.shipping_service import ShippingService
    return ShippingService()


@pytest.fixture
def seller_service():
    from apps.sellers.services.seller_service import SellerService
    return SellerService()


@pytest.fixture
def review_service():
    from apps.products.services.review_service import ReviewService
    return ReviewService()


@pytest.fixture
def stripe_service():
    from apps.integrations.services.stripe_service import StripeService
    return StripeService()


# ==================== Mock Fixtures ====================

@pytest.fixture
def mock_stripe_payment_intent(mocker):
    """Mock Stripe payment intent creation."""
    mock = mocker.patch('stripe.PaymentIntent.create')
    mock.return_value = mocker.MagicMock(
        id='pi_test_123456789',
        client_secret='pi_test_123456789_secret',
        amount=22000,
        status='requires_payment_method'
    )
    return mock


@pytest.fixture
def momo_client(mocker):
    """A MoMoService double with a pending request-to-pay."""
    client = mocker.MagicMock()
    client.request_to_pay.return_value = {
        'reference_id': 'ref-0001',
        'currency': 'EUR',
    }
    client.get_transaction_status.return_value = {'status': 'PENDING'}
    return client
