"""
Query filters for the admin order listings.
"""
import django_filters

from .models import Order


class OrderFilter(django_filters.FilterSet):
    order_status = django_filters.ChoiceFilter(choices=Order.ORDER_STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Order.PAYMENT_STATUS_CHOICES)
    payment_method = django_filters.ChoiceFilter(choices=Order.PAYMENT_METHOD_CHOICES)
    customer = django_filters.NumberFilter(field_name='customer_id')

    class Meta:
        model = Order
        fields = ['order_status', 'payment_status', 'payment_method', 'customer']
