from django.conf import settings
from django.contrib import admin
from django.utils.html import format_html

from .models import Product


class StockLevelFilter(admin.SimpleListFilter):
    title = 'stock level'
    parameter_name = 'stock'

    def lookups(self, request, model_admin):
        return [
            ('out', 'Out of stock'),
            ('low', 'Low stock'),
        ]

    def queryset(self, request, queryset):
        if self.value() == 'out':
            return queryset.filter(stock_quantity=0)
        if self.value() == 'low':
            return queryset.filter(stock_quantity__lte=settings.LOW_STOCK_THRESHOLD)
        return queryset


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = [
        'name',
        'manufacturer',
        'price',
        'stock_badge',
        'bundle_summary',
        'is_active',
        'updated_at',
    ]
    list_filter = ['is_active', 'is_bundle_offer', StockLevelFilter]
    search_fields = ['name', 'manufacturer']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        (None, {
            'fields': ('name', 'manufacturer', 'description', 'is_active')
        }),
        ('Pricing & Stock', {
            'fields': ('price', 'stock_quantity'),
        }),
        ('Bundle Offer', {
            'fields': ('is_bundle_offer', 'bundle_buy_quantity', 'bundle_free_quantity', 'bundle_price'),
            'description': 'All three bundle fields are required when the offer is on.',
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['deactivate_products', 'end_bundle_offers']

    @admin.display(description='Stock', ordering='stock_quantity')
    def stock_badge(self, obj):
        if obj.stock_quantity == 0:
            color = '#B85C5C'
        elif obj.stock_quantity <= settings.LOW_STOCK_THRESHOLD:
            color = '#D9A441'
        else:
            color = '#3C8D5A'
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            color, obj.stock_quantity,
        )

    @admin.display(description='Bundle')
    def bundle_summary(self, obj):
        if not obj.bundle_size:
            return '-'
        return f'Buy {obj.bundle_buy_quantity} get {obj.bundle_free_quantity} for {obj.bundle_price}'

    @admin.action(description='Deactivate selected products')
    def deactivate_products(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f'Deactivated {count} product(s).')

    @admin.action(description='End bundle offers')
    def end_bundle_offers(self, request, queryset):
        count = queryset.filter(is_bundle_offer=True).update(is_bundle_offer=False)
        self.message_user(request, f'Ended {count} bundle offer(s).')
