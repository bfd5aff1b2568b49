"""
API tests for product endpoints.
Tests catalog browsing, filtering, pagination and seller catalog management.
"""
import pytest
from decimal import Decimal
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import User
from apps.products.models import Product
from apps.sellers.models import SellerProfile
from tests.conftest import ProductFactory, UserFactory, make_seller


@pytest.mark.django_db
class TestCatalogAPI:
    """Test the public product list."""

    def setup_method(self):
        self.client = APIClient()
        self.url = '/api/v1/products'
        self.seller = make_seller()

    def test_anonymous_can_browse(self):
        ProductFactory.create_batch(3, seller=self.seller)

        response = self.client.get(self.url)

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['products']) == 3
        assert response.data['pagination'] == {
            'current_page': 1,
            'total_pages': 1,
            'total_products': 3,
            'limit': 12
        }

    def test_pagination_with_limit(self):
        ProductFactory.create_batch(5, seller=self.seller)

        response = self.client.get(self.url, {'page': 2, 'limit': 2})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['products']) == 2
        assert response.data['pagination']['current_page'] == 2
        assert response.data['pagination']['total_pages'] == 3

    def test_page_past_the_end_is_empty(self):
        ProductFactory.create_batch(3, seller=self.seller)

        response = self.client.get(self.url, {'page': 99})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['products'] == []
        assert response.data['pagination'] == {
            'current_page': 99,
            'total_pages': 1,
            'total_products': 3,
            'limit': 12
        }

    @pytest.mark.parametrize('page', ['abc', '0', '-2'])
    def test_bad_page_number_shows_first_page(self, page):
        ProductFactory.create_batch(2, seller=self.seller)

        response = self.client.get(self.url, {'page': page})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['products']) == 2
        assert response.data['pagination']['current_page'] == 1

    @pytest.mark.parametrize('bounds', [
        {'min_price': 'NaN'},
        {'max_price': 'Infinity'},
        {'min_price': '-Infinity', 'max_price': 'nan'},
    ])
    def test_non_finite_price_bounds_ignored(self, bounds):
        ProductFactory.create_batch(2, seller=self.seller)

        response = self.client.get(self.url, bounds)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['pagination']['total_products'] == 2

    def test_hides_inactive_and_blocked_seller_products(self):
        visible = ProductFactory(seller=self.seller)
        ProductFactory(seller=self.seller, is_active=False)

        blocked_store = make_seller(approval_status=SellerProfile.STATUS_BLOCKED)
        ProductFactory(seller=blocked_store)

        blocked_account = make_seller(status=User.STATUS_BLOCKED)
        ProductFactory(seller=blocked_account)

        response = self.client.get(self.url)

        ids = [p['id'] for p in response.data['products']]
        assert ids == [visible.id]

    def test_search_matches_name_and_description(self):
        ProductFactory(seller=self.seller, name='Agaseke basket')
        ProductFactory(seller=self.seller, name='Mug',
                       description='Coffee mug printed with an agaseke pattern')
        ProductFactory(seller=self.seller, name='Phone charger')

        response = self.client.get(self.url, {'search': 'agaseke'})

        assert response.data['pagination']['total_products'] == 2

    def test_category_and_price_filters(self):
        ProductFactory(seller=self.seller, category='Fashion', price=Decimal('5000'))
        ProductFactory(seller=self.seller, category='Fashion', price=Decimal('25000'))
        ProductFactory(seller=self.seller, category='Books', price=Decimal('6000'))

        response = self.client.get(self.url, {
            'category': 'Fashion',
            'min_price': '1000',
            'max_price': '10000'
        })

        assert response.data['pagination']['total_products'] == 1
        assert response.data['products'][0]['category'] == 'Fashion'

    def test_category_all_disables_filter(self):
        ProductFactory(seller=self.seller, category='Fashion')
        ProductFactory(seller=self.seller, category='Books')

        response = self.client.get(self.url, {'category': 'All'})

        assert response.data['pagination']['total_products'] == 2

    def test_sort_by_price_ascending(self):
        ProductFactory(seller=self.seller, price=Decimal('3000'))
        ProductFactory(seller=self.seller, price=Decimal('1000'))
        ProductFactory(seller=self.seller, price=Decimal('2000'))

        response = self.client.get(self.url, {'sort_by': 'price', 'order': 'asc'})

        prices = [Decimal(p['price']) for p in response.data['products']]
        assert prices == [Decimal('1000'), Decimal('2000'), Decimal('3000')]

    def test_unknown_sort_falls_back_to_newest(self):
        first = ProductFactory(seller=self.seller)
        second = ProductFactory(seller=self.seller)

        response = self.client.get(self.url, {'sort_by': 'password'})

        ids = [p['id'] for p in response.data['products']]
        assert ids == [second.id, first.id]


@pytest.mark.django_db
class TestProductDetailAPI:

    def test_detail_includes_store(self, product):
        response = APIClient().get(f'/api/v1/products/{product.id}')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['seller_profile']['store_name'] == \
            product.seller.seller_profile.store_name
        assert response.data['in_stock'] is True

    def test_inactive_product_hidden_from_public(self, seller):
        hidden = ProductFactory(seller=seller, is_active=False)

        response = APIClient().get(f'/api/v1/products/{hidden.id}')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_owner_sees_own_inactive_product(self, seller, seller_client):
        hidden = ProductFactory(seller=seller, is_active=False)

        response = seller_client.get(f'/api/v1/products/{hidden.id}')

        assert response.status_code == status.HTTP_200_OK

    def test_related_products(self, product):
        same_category = ProductFactory(category=product.category)
        same_seller = ProductFactory(seller=product.seller, category='Books')
        ProductFactory(category='Automotive')

        response = APIClient().get(f'/api/v1/products/{product.id}/related')

        ids = {p['id'] for p in response.data['products']}
        assert ids == {same_category.id, same_seller.id}


@pytest.mark.django_db
class TestProductManagementAPI:
    """Test seller catalog endpoints."""

    def setup_method(self):
        self.payload = {
            'name': 'Imigongo wall art',
            'description': 'Hand painted geometric panel from Nyakarambi',
            'price': '45000.00',
            'category': 'Home & Garden',
            'stock': 4,
            'image_url': 'https://cdn.example.com/imigongo.jpg'
        }

    def test_active_seller_creates_product(self, seller, seller_client):
        response = seller_client.post('/api/v1/products', self.payload)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['product']['seller'] == seller.id

        seller.seller_profile.refresh_from_db()
        assert seller.seller_profile.total_products == 1

    def test_pending_seller_cannot_create(self, pending_seller):
        client = APIClient()
        client.force_authenticate(pending_seller)

        response = client.post('/api/v1/products', self.payload)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert 'pending approval' in str(response.data['detail'])

    def test_customer_cannot_create(self, customer_client):
        response = customer_client.post('/api/v1/products', self.payload)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_category_rejected(self, seller_client):
        self.payload['category'] = 'Weapons'

        response = seller_client.post('/api/v1/products', self.payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_negative_price_rejected(self, seller_client):
        self.payload['price'] = '-1'

        response = seller_client.post('/api/v1/products', self.payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_owner_updates_product(self, product, seller_client):
        response = seller_client.patch(f'/api/v1/products/{product.id}', {'stock': 0})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['product']['in_stock'] is False

    def test_other_seller_cannot_update(self, product):
        client = APIClient()
        client.force_authenticate(make_seller())

        response = client.patch(f'/api/v1/products/{product.id}', {'stock': 0})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_admin_deletes_any_product(self, product, admin_client):
        response = admin_client.delete(f'/api/v1/products/{product.id}')

        assert response.status_code == status.HTTP_200_OK
        assert not Product.objects.filter(id=product.id).exists()

    def test_my_products_lists_own_including_inactive(self, seller, seller_client):
        ProductFactory(seller=seller)
        ProductFactory(seller=seller, is_active=False)
        ProductFactory()

        response = seller_client.get('/api/v1/products/seller/my-products')

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['products']) == 2

    def test_my_products_forbidden_for_customers(self):
        client = APIClient()
        client.force_authenticate(UserFactory())

        response = client.get('/api/v1/products/seller/my-products')

        assert response.status_code == status.HTTP_403_FORBIDDEN
