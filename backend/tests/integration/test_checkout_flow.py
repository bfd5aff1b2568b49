"""
Integration tests for complete marketplace workflows.
Drive the public API from signup to a reviewed delivery, with only the
payment providers mocked.
"""
import pytest
from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from rest_framework import status
from rest_framework.test import APIClient

from apps.integrations.services.momo_service import MoMoService
from apps.orders.models import Order
from apps.products.models import Product
from apps.sellers.models import SellerProfile
from tests.conftest import ProductFactory, UserFactory, make_seller


STRONG_PASSWORD = 'Kigali@2024'

SHIPPING_INFO = {
    'full_name': 'Aline Uwase',
    'phone': '250788123456',
    'city': 'Kigali',
    'address_line': 'KG 11 Ave, Kimihurura'
}


def sign_in(client, email, password):
    """Run the two step OTP login and attach the access token."""
    with patch('apps.notifications.tasks.send_otp_email.delay') as mock_send:
        requested = client.post('/api/v1/auth/login/request-otp', {
            'email': email, 'password': password
        })
        assert requested.status_code == status.HTTP_200_OK
        otp = mock_send.call_args.args[1]

    verified = client.post('/api/v1/auth/login/verify-otp', {'email': email, 'otp': otp})
    assert verified.status_code == status.HTTP_200_OK
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {verified.data['token']}")
    return verified.data


@pytest.mark.integration
@pytest.mark.django_db
class TestMoMoCheckoutFlow:
    """Signup, checkout, MoMo payment, delivery and review."""

    def test_customer_journey(self, kigali_rate):
        seller = make_seller()
        basket = ProductFactory(seller=seller, price=Decimal('15000.00'), stock=5)
        shopper = APIClient()

        # Step 1: signup and e-mail verification
        with patch('apps.notifications.tasks.send_otp_email.delay') as mock_send:
            signup = shopper.post('/api/v1/auth/signup', {
                'email': 'aline@example.com',
                'password': STRONG_PASSWORD,
                'first_name': 'Aline'
            })
            signup_otp = mock_send.call_args.args[1]
        assert signup.status_code == status.HTTP_201_CREATED

        verified = shopper.post('/api/v1/auth/verify-signup-otp', {
            'email': 'aline@example.com', 'otp': signup_otp
        })
        assert verified.status_code == status.HTTP_200_OK

        # Step 2: login and fill the cart
        sign_in(shopper, 'aline@example.com', STRONG_PASSWORD)
        added = shopper.post('/api/v1/cart/add', {'product_id': basket.id, 'quantity': 2})
        assert added.status_code == status.HTTP_200_OK

        # Step 3: checkout
        checkout = shopper.post('/api/v1/orders', {
            'shipping_info': SHIPPING_INFO,
            'payment_method': 'MoMo'
        })
        assert checkout.status_code == status.HTTP_201_CREATED
        order_id = checkout.data['order']['id']
        assert Decimal(checkout.data['order']['total_price']) == Decimal('32000.00')

        # Step 4: MoMo request to pay, settled by callback
        with patch.object(MoMoService, 'request_to_pay',
                          return_value={'reference_id': 'ref-journey', 'currency': 'EUR'}):
            initiated = shopper.post('/api/v1/payment/momo/initiate', {
                'order_id': order_id, 'phone_number': '250788123456'
            })
        assert initiated.data['reference_id'] == 'ref-journey'

        callback = APIClient().post('/api/v1/payment/webhook/momo', {
            'referenceId': 'ref-journey', 'status': 'SUCCESSFUL'
        })
        assert callback.data['processed'] is True

        order = Order.objects.get(id=order_id)
        assert order.is_paid
        assert order.order_status == Order.STATUS_PAID
        assert any('confirmed' in message.subject for message in mail.outbox)

        # Step 5: seller ships, admin delivers
        seller_client = APIClient()
        seller_client.force_authenticate(seller)
        shipped = seller_client.patch(f'/api/v1/seller/orders/{order_id}/shipping-status', {
            'shipping_status': 'IN_TRANSIT'
        })
        assert shipped.status_code == status.HTTP_200_OK

        admin_client = APIClient()
        admin_client.force_authenticate(UserFactory(role='admin'))
        for next_status in ['SHIPPED', 'DELIVERED']:
            response = admin_client.patch(f'/api/v1/orders/{order_id}/status', {
                'order_status': next_status
            })
            assert response.status_code == status.HTTP_200_OK

        # Step 6: the customer reviews what arrived
        review = shopper.post('/api/v1/reviews', {
            'product': basket.id, 'rating': 5, 'comment': 'Beautifully woven'
        })
        assert review.status_code == status.HTTP_201_CREATED

        basket.refresh_from_db()
        assert basket.stock == 3
        assert basket.average_rating == Decimal('5.0')
        seller.seller_profile.refresh_from_db()
        assert seller.seller_profile.total_sales == 2

        stats = seller_client.get('/api/v1/seller/stats').data['stats']
        assert Decimal(stats['total_revenue']) == Decimal('30000.00')
        assert stats['delivered_orders'] == 1


@pytest.mark.integration
@pytest.mark.django_db
class TestStripeCheckoutFlow:

    def test_card_payment(self, customer, product, kigali_rate, mock_stripe_payment_intent,
                          mocker):
        client = APIClient()
        client.force_authenticate(customer)
        client.post('/api/v1/cart/add', {'product_id': product.id, 'quantity': 1})
        order_id = client.post('/api/v1/orders', {
            'shipping_info': SHIPPING_INFO, 'payment_method': 'Card'
        }).data['order']['id']

        intent = client.post('/api/v1/payment/stripe/create-intent', {'order_id': order_id})
        assert intent.status_code == status.HTTP_200_OK

        mocker.patch('stripe.PaymentIntent.retrieve', return_value=mocker.MagicMock(
            id=intent.data['payment_intent_id'],
            status='succeeded',
            metadata={'order_id': str(order_id)},
            amount_received=12000,
            currency='rwf'
        ))
        confirmed = client.post('/api/v1/payment/stripe/confirm', {
            'order_id': order_id,
            'payment_intent_id': intent.data['payment_intent_id']
        })

        assert confirmed.status_code == status.HTTP_200_OK
        order = Order.objects.get(id=order_id)
        assert order.is_paid
        assert order.payment_method == Order.METHOD_CARD
        assert order.transaction_id == 'pi_test_123456789'


@pytest.mark.integration
@pytest.mark.django_db
class TestSellerOnboardingFlow:
    """Customer asks to sell, admin approves, the new seller lists a product."""

    def test_upgrade_then_list_product(self, customer, admin_user):
        customer_client = APIClient()
        customer_client.force_authenticate(customer)
        admin_client = APIClient()
        admin_client.force_authenticate(admin_user)

        filed = customer_client.post('/api/v1/seller/request-upgrade', {
            'store_name': 'Huye Pottery',
            'store_description': 'Clay pots and vases fired in Huye district',
            'phone': '250788333444'
        })
        assert filed.status_code == status.HTTP_201_CREATED

        approved = admin_client.put(
            f"/api/v1/admin/seller-requests/{filed.data['request']['id']}/approve")
        assert approved.status_code == status.HTTP_200_OK

        customer.refresh_from_db()
        profile = SellerProfile.objects.get(user=customer)
        assert profile.approval_status == SellerProfile.STATUS_ACTIVE

        listed = customer_client.post('/api/v1/products', {
            'name': 'Clay vase',
            'description': 'Hand thrown vase, 30cm',
            'price': '12000.00',
            'category': 'Home & Garden',
            'stock': 6,
            'image_url': 'https://cdn.example.com/clay-vase.jpg'
        })
        assert listed.status_code == status.HTTP_201_CREATED

        # Blocking the store hides the listing again
        admin_client.patch(f'/api/v1/admin/sellers/{profile.id}/status', {'status': 'blocked'})
        assert not Product.objects.filter(seller=customer, is_active=True).exists()
        catalog = APIClient().get('/api/v1/products')
        assert catalog.data['pagination']['total_products'] == 0
