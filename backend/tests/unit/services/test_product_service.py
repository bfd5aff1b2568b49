"""
Unit tests for ProductService.
Tests catalog visibility, filtering and seller catalog upkeep.
"""
import pytest
from decimal import Decimal

from apps.core.models import User
from apps.products.services.product_service import ProductService
from apps.sellers.models import SellerProfile
from tests.conftest import ProductFactory, UserFactory, make_seller


@pytest.fixture
def product_service():
    return ProductService()


@pytest.mark.django_db
class TestCatalog:

    def test_hides_blocked_sellers(self, product_service):
        # Arrange
        visible = ProductFactory()
        ProductFactory(seller=make_seller(approval_status=SellerProfile.STATUS_BLOCKED))
        blocked_user = make_seller()
        blocked_user.status = User.STATUS_BLOCKED
        blocked_user.save()
        ProductFactory(seller=blocked_user)

        # Act
        products = list(product_service.visible_products())

        # Assert
        assert products == [visible]

    def test_price_range_and_ascending_sort(self, product_service):
        cheap = ProductFactory(price=Decimal('1500.00'))
        mid = ProductFactory(price=Decimal('7000.00'))
        ProductFactory(price=Decimal('90000.00'))

        products = list(product_service.catalog({
            'min_price': '1000', 'max_price': '10000',
            'sort_by': 'price', 'order': 'asc'
        }))

        assert products == [cheap, mid]

    def test_bad_filters_are_ignored(self, product_service):
        ProductFactory.create_batch(2)

        products = product_service.catalog({
            'min_price': 'cheap', 'sort_by': 'seller__password', 'category': 'All'
        })

        assert products.count() == 2

    def test_search_matches_description(self, product_service):
        match = ProductFactory(description='Imigongo art panel from Nyakarambi')
        ProductFactory(description='Plain tote bag')

        assert list(product_service.catalog({'search': 'imigongo'})) == [match]

    def test_related_by_category_or_seller(self, product_service):
        seller = make_seller()
        product = ProductFactory(seller=seller, category='Food & Beverages')
        same_seller = ProductFactory(seller=seller, category='Beauty & Health')
        same_category = ProductFactory(category='Food & Beverages')
        ProductFactory(category='Books')

        related = set(product_service.related_products(product))

        assert related == {same_seller, same_category}


@pytest.mark.django_db
class TestSellerCatalog:

    def test_create_and_delete_track_product_count(self, product_service):
        seller = make_seller()

        created = product_service.create_product(
            seller, name='Agaseke basket', description='Woven sisal basket',
            price=Decimal('18000.00'), category='Home & Garden', stock=4
        )
        seller.seller_profile.refresh_from_db()
        assert seller.seller_profile.total_products == 1

        product_service.delete_product(created.data, user=seller)
        seller.seller_profile.refresh_from_db()
        assert seller.seller_profile.total_products == 0

    def test_seller_products_include_inactive(self, product_service):
        seller = make_seller()
        ProductFactory(seller=seller, is_active=False)
        ProductFactory(seller=seller)
        ProductFactory(seller=UserFactory(role=User.ROLE_SELLER))

        assert product_service.seller_products(seller).count() == 2
