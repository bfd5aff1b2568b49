# apps/products/serializers.py

from rest_framework import serializers

from apps.core.serializers import UserPublicSerializer
from .models import CATEGORY_CHOICES, Product, Review, WishlistItem


def store_name_for(user):
    profile = getattr(user, 'seller_profile', None)
    return profile.store_name if profile else 'Unknown Seller'


class ProductListSerializer(serializers.ModelSerializer):
    """Catalog card"""
    seller_name = serializers.SerializerMethodField()
    in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'price', 'category', 'stock',
            'image_url', 'seller', 'seller_name', 'average_rating',
            'total_reviews', 'is_active', 'in_stock', 'created_at'
        ]

    def get_seller_name(self, obj):
        return store_name_for(obj.seller)


class ProductDetailSerializer(ProductListSerializer):
    """Full product details with the seller's store"""
    seller_profile = serializers.SerializerMethodField()

    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + ['seller_profile', 'updated_at']

    def get_seller_profile(self, obj):
        from apps.sellers.serializers import SellerPublicSerializer

        profile = getattr(obj.seller, 'seller_profile', None)
        return SellerPublicSerializer(profile).data if profile else None


class ProductCreateUpdateSerializer(serializers.ModelSerializer):
    """Product creation/update"""
    name = serializers.CharField(min_length=3, max_length=200)
    description = serializers.CharField(min_length=10, max_length=2000)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    category = serializers.ChoiceField(choices=CATEGORY_CHOICES)
    stock = serializers.IntegerField(min_value=0)

    class Meta:
        model = Product
        fields = [
            'name', 'description', 'price', 'category', 'stock',
            'image_url', 'is_active'
        ]


class ReviewSerializer(serializers.ModelSerializer):
    user = UserPublicSerializer(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id', 'product', 'user', 'user_email', 'rating', 'comment',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'user', 'created_at', 'updated_at']


class AdminReviewSerializer(ReviewSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta(ReviewSerializer.Meta):
        fields = ReviewSerializer.Meta.fields + ['product_name']


class ReviewCreateSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class WishlistItemSerializer(serializers.ModelSerializer):
    product = ProductListSerializer(read_only=True)

    class Meta:
        model = WishlistItem
        fields = ['id', 'product', 'added_at']
