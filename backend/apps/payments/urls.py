"""
URL configuration for payment endpoints.
"""
from django.urls import path

from .views import (
    MoMoInitiateView,
    MoMoStatusView,
    MoMoWebhookView,
    StripeConfirmView,
    StripeCreateIntentView
)

urlpatterns = [
    path(
        'payment/momo/initiate',
        MoMoInitiateView.as_view(),
        name='momo-initiate'
    ),
    path(
        'payment/momo/status/<str:reference_id>',
        MoMoStatusView.as_view(),
        name='momo-status'
    ),
    path(
        'payment/webhook/momo',
        MoMoWebhookView.as_view(),
        name='momo-webhook'
    ),
    path(
        'payment/stripe/create-intent',
        StripeCreateIntentView.as_view(),
        name='stripe-create-intent'
    ),
    path(
        'payment/stripe/confirm',
        StripeConfirmView.as_view(),
        name='stripe-confirm'
    ),
]
