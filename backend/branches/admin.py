from django.contrib import admin

from .models import Branch, DeliveryPartner, RestaurantTable


class RestaurantTableInline(admin.TabularInline):
    model = RestaurantTable
    extra = 0
    readonly_fields = ["qr_code_token"]
    fields = ["table_number", "capacity", "is_active", "qr_code_token"]


class DeliveryPartnerInline(admin.TabularInline):
    model = DeliveryPartner
    extra = 0
    fields = ["name", "discount_percentage", "is_discount_active", "is_active"]


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "timezone", "requires_cancel_note", "is_active"]
    list_filter = ["is_active", "requires_cancel_note"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ["name"]}
    inlines = [RestaurantTableInline, DeliveryPartnerInline]
