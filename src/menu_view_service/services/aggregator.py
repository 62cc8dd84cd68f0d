"""Relationship aggregation for restaurant views.

Joins a restaurant with its categories, items and templates into the nested,
sorted and filtered RestaurantView consumed by the rendering layer. The join
is pure: the same inputs always produce an equal view, whatever order the
collections arrived in.
"""

import time
from collections.abc import Iterable

from menu_view_service.models.menu_models import Category, MenuItem, Restaurant, Template
from menu_view_service.models.view_models import (
    CategoryView,
    ItemView,
    RestaurantView,
    ScheduleDay,
)
from menu_view_service.observability import traced
from menu_view_service.observability.metrics import record_aggregation_duration
from menu_view_service.services.formatting import (
    format_day_name,
    format_price,
    sort_schedule_days,
)
from menu_view_service.services.template_resolver import get_template_component


def is_active(active: bool | None) -> bool:
    """Return whether a category or item is visible.

    Missing means active; only an explicit False hides the document.
    """
    return active is not False


def _display_order(document: Category | MenuItem) -> tuple[int, str]:
    return (document.order, document.id)


def _item_view(item: MenuItem, currency: str) -> ItemView:
    return ItemView(**item.model_dump(), formatted_price=format_price(item.price, currency))


@traced("aggregate_restaurant")
def aggregate(
    restaurant: Restaurant,
    categories: Iterable[Category],
    items: Iterable[MenuItem],
    templates: Iterable[Template],
) -> RestaurantView:
    """Join one restaurant with its categories, items and template.

    Args:
        restaurant: Restaurant document
        categories: Categories of the restaurant; others are ignored
        items: Items of the restaurant's categories; others are ignored
        templates: Stored templates

    Returns:
        RestaurantView with active categories and items sorted by (order, id),
        the stored template matching template_id (or None) and the resolved variant
    """
    started = time.perf_counter()

    items_by_category: dict[str, list[MenuItem]] = {}
    for item in items:
        if item.restaurant_id == restaurant.id and is_active(item.active):
            items_by_category.setdefault(item.category_id, []).append(item)

    visible_categories = sorted(
        (c for c in categories if c.restaurant_id == restaurant.id and is_active(c.active)),
        key=_display_order,
    )

    category_views = [
        CategoryView(
            **category.model_dump(),
            items=[
                _item_view(item, restaurant.currency)
                for item in sorted(items_by_category.get(category.id, []), key=_display_order)
            ],
        )
        for category in visible_categories
    ]

    template = next((t for t in templates if t.id == restaurant.template_id), None)

    view = RestaurantView(
        **restaurant.model_dump(),
        categories=category_views,
        template=template,
        variant=get_template_component(restaurant.template_id),
        opening_hours=[
            ScheduleDay(day=day, label=format_day_name(day), hours=hours)
            for day, hours in sort_schedule_days(restaurant.schedule)
        ],
    )

    record_aggregation_duration(time.perf_counter() - started)
    return view
