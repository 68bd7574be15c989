from decimal import Decimal

from django.conf import settings
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum

from orders.models import Order, OrderItem
from orders.store import OrderStore


class OrderStatsService:
    """Simple aggregate counts for a café's dashboard."""

    @staticmethod
    def _date_filter(prefix, start=None, end=None) -> Q:
        condition = Q()
        if start:
            condition &= Q(**{f"{prefix}created_at__gte": start})
        if end:
            condition &= Q(**{f"{prefix}created_at__lte": end})
        return condition

    @staticmethod
    def get_order_stats(cafe_id, start=None, end=None) -> dict:
        """
        Order counts per status and revenue for a café.

        Revenue only counts COMPLETED orders. ``start`` and ``end`` bound
        created_at inclusively; either may be omitted.
        """
        OrderStore.get_cafe(cafe_id)
        status = Order.OrderStatus
        stats = (
            Order.objects.for_cafe(cafe_id)
            .filter(OrderStatsService._date_filter("", start, end))
            .aggregate(
                total_orders=Count("id"),
                pending_orders=Count("id", filter=Q(status=status.PENDING)),
                accepted_orders=Count("id", filter=Q(status=status.ACCEPTED)),
                in_progress_orders=Count("id", filter=Q(status=status.IN_PROGRESS)),
                ready_orders=Count("id", filter=Q(status=status.READY)),
                completed_orders=Count("id", filter=Q(status=status.COMPLETED)),
                cancelled_orders=Count("id", filter=Q(status=status.CANCELLED)),
                total_revenue=Sum("total_amount", filter=Q(status=status.COMPLETED)),
            )
        )
        stats["total_revenue"] = stats["total_revenue"] or Decimal("0.00")
        return stats

    @staticmethod
    def get_popular_items(cafe_id, start=None, end=None, limit=None) -> list:
        """Best-selling menu items by quantity over completed orders."""
        OrderStore.get_cafe(cafe_id)
        limit = limit or settings.ORDER_POPULAR_ITEMS_LIMIT
        line_total = ExpressionWrapper(
            F("unit_price") * F("quantity"),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        )
        rows = (
            OrderItem.objects.filter(
                order__cafe_id=cafe_id,
                order__status=Order.OrderStatus.COMPLETED,
            )
            .filter(OrderStatsService._date_filter("order__", start, end))
            .values("menu_item_id", "menu_item__name")
            .annotate(
                total_quantity=Sum("quantity"),
                total_revenue=Sum(line_total),
                order_count=Count("order", distinct=True),
            )
            .order_by("-total_quantity", "menu_item__name")[:limit]
        )
        return [
            {
                "menu_item_id": str(row["menu_item_id"]),
                "name": row["menu_item__name"],
                "total_quantity": row["total_quantity"],
                "total_revenue": row["total_revenue"] or Decimal("0.00"),
                "order_count": row["order_count"],
            }
            for row in rows
        ]
