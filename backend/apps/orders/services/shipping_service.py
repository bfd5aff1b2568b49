"""
Shipping rate service.
Resolves the delivery fee for a city and manages the admin rate table.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import IntegrityError

from apps.core.services.base import BaseService, ServiceResult
from apps.orders.models import ShippingSetting


class ShippingService(BaseService):
    """
    Looks up per-city shipping fees.
    Unknown cities fall back to the default rate, then to a fixed fee.
    """

    FALLBACK_FEE = Decimal('5000')

    def resolve_fee(self, city: Optional[str]) -> Dict[str, Any]:
        """
        Work out the shipping fee for a destination city.

        Returns:
            Dict with city, fee and whether the default rate was used
        """
        city = (city or '').strip()

        if city:
            setting = ShippingSetting.objects.filter(
                city__iexact=city,
                is_active=True
            ).first()
            if setting:
                return {
                    'city': setting.city,
                    'fee': setting.fee,
                    'is_default': setting.is_default,
                }

        default = ShippingSetting.objects.filter(
            is_default=True,
            is_active=True
        ).first()
        if default:
            return {'city': city, 'fee': default.fee, 'is_default': True}

        self.log_warning("No shipping rate configured, using fallback fee", city=city)
        return {'city': city, 'fee': self.FALLBACK_FEE, 'is_default': True}

    def active_rates(self):
        return ShippingSetting.objects.filter(is_active=True).order_by('city')

    def _city_taken(self, city: str, exclude_id: Optional[int] = None) -> bool:
        queryset = ShippingSetting.objects.filter(city__iexact=city.strip())
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.exists()

    def create_setting(self, data: Dict[str, Any]) -> ServiceResult:
        if self._city_taken(data['city']):
            return ServiceResult.fail(
                f"Shipping rate for {data['city']} already exists",
                error_code="DUPLICATE_CITY"
            )

        try:
            setting = ShippingSetting.objects.create(**data)
        except IntegrityError:
            return ServiceResult.fail(
                f"Shipping rate for {data['city']} already exists",
                error_code="DUPLICATE_CITY"
            )

        self.log_info("Created shipping rate", city=setting.city, fee=float(setting.fee))
        return ServiceResult.ok(setting)

    def update_setting(self, setting: ShippingSetting,
                       data: Dict[str, Any]) -> ServiceResult:
        city = data.get('city')
        if city and self._city_taken(city, exclude_id=setting.id):
            return ServiceResult.fail(
                f"Shipping rate for {city} already exists",
                error_code="DUPLICATE_CITY"
            )

        for field, value in data.items():
            setattr(setting, field, value)
        setting.save()

        self.log_info("Updated shipping rate", setting_id=setting.id)
        return ServiceResult.ok(setting)

    def delete_setting(self, setting: ShippingSetting) -> ServiceResult:
        if setting.is_default:
            return ServiceResult.fail(
                "Cannot delete the default shipping rate. Set another rate as default first.",
                error_code="DEFAULT_RATE"
            )

        city = setting.city
        setting.delete()
        self.log_info("Deleted shipping rate", city=city)
        return ServiceResult.ok({'message': f'Shipping rate for {city} deleted'})
