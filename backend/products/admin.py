from django.contrib import admin

from .models import Modifier, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ["name", "base_price", "discount_percentage", "has_active_discount", "is_active"]
    list_filter = ["is_active", "has_active_discount"]
    search_fields = ["name"]


@admin.register(Modifier)
class ModifierAdmin(admin.ModelAdmin):
    list_display = ["name", "price", "is_available"]
    list_filter = ["is_available"]
    search_fields = ["name"]
    filter_horizontal = ["products"]
