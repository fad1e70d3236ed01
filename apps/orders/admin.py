from django.contrib import admin, messages
from django.utils.html import format_html

from .models import Order, OrderItem, OrderStatus
from .services import update_order_status

STATUS_COLORS = {
    OrderStatus.PENDING: '#D9A441',
    OrderStatus.CONFIRMED: '#2F6FA3',
    OrderStatus.SHIPPED: '#6A5ACD',
    OrderStatus.DELIVERED: '#3C8D5A',
    OrderStatus.CANCELLED: '#B85C5C',
}


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    fields = ['product', 'quantity', 'free_quantity', 'price', 'subtotal']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are created by checkout only. Status changes made here go through
    the order service so customers are notified.
    """

    list_display = ['id', 'user', 'status_badge', 'payment_status', 'payment_method', 'total_amount', 'ordered_at']
    list_filter = ['status', 'payment_status', 'payment_method', 'ordered_at']
    search_fields = ['id', 'user__email', 'shipping_address']
    date_hierarchy = 'ordered_at'
    readonly_fields = [
        'user', 'shipping_address', 'payment_method', 'status',
        'payment_status', 'total_amount', 'ordered_at', 'updated_at',
    ]
    inlines = [OrderItemInline]
    actions = ['mark_confirmed', 'mark_shipped', 'mark_delivered', 'mark_cancelled']

    def has_add_permission(self, request):
        return False

    @admin.display(description='Status', ordering='status')
    def status_badge(self, obj):
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.status, '#999'), obj.get_status_display(),
        )

    def _set_status(self, request, queryset, status):
        for order in queryset:
            update_order_status(order_id=order.pk, status=status)
        self.message_user(request, f'Updated {queryset.count()} order(s) to {status}.', messages.SUCCESS)

    @admin.action(description='Mark as confirmed')
    def mark_confirmed(self, request, queryset):
        self._set_status(request, queryset, OrderStatus.CONFIRMED)

    @admin.action(description='Mark as shipped')
    def mark_shipped(self, request, queryset):
        self._set_status(request, queryset, OrderStatus.SHIPPED)

    @admin.action(description='Mark as delivered')
    def mark_delivered(self, request, queryset):
        self._set_status(request, queryset, OrderStatus.DELIVERED)

    @admin.action(description='Cancel orders')
    def mark_cancelled(self, request, queryset):
        self._set_status(request, queryset, OrderStatus.CANCELLED)
