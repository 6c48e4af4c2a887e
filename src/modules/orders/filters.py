import django_filters

from modules.orders.models import Order
from modules.orders.status_helpers import canonical_status


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(method="filter_status")
    kitchen_status = django_filters.CharFilter(field_name="kitchen_status")
    driver = django_filters.CharFilter(field_name="assignment_driver_type")
    start_date = django_filters.DateFilter(field_name="delivery_date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="delivery_date", lookup_expr="lte")
    customer_name = django_filters.CharFilter(
        field_name="customer_name", lookup_expr="icontains"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "kitchen_status",
            "driver",
            "start_date",
            "end_date",
            "customer_name",
        ]

    def filter_status(self, queryset, name, value):
        # Legacy names ("ready", "confirmed", ...) resolve to canonical ones.
        return queryset.filter(status=canonical_status(value))
