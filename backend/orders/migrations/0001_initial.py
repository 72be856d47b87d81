import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("branches", "0001_initial"),
        ("products", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_type", models.CharField(choices=[("walk_in", "Walk-in"), ("delivery", "Delivery"), ("qr_scan", "QR Scan"), ("takeaway", "Takeaway")], default="walk_in", max_length=20)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cooking", "Cooking"), ("ready", "Ready"), ("in_service", "In Service"), ("paid", "Paid"), ("cancelled", "Cancelled")], default="pending", max_length=20)),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("business_date", models.DateField(blank=True, help_text="Branch-local calendar day the order was placed on.", null=True)),
                ("daily_sequence", models.PositiveIntegerField(blank=True, help_text="Per-branch, per-day ticket number shown to kitchen staff.", null=True)),
                ("version", models.PositiveIntegerField(default=0, help_text="Incremented on every status change.")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("cooking_started_at", models.DateTimeField(blank=True, null=True)),
                ("ready_at", models.DateTimeField(blank=True, null=True)),
                ("actual_prep_duration", models.PositiveIntegerField(blank=True, help_text="Minutes from cooking start (or creation) to ready.", null=True)),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="orders", to="branches.branch")),
                ("delivery_partner", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="branches.deliverypartner")),
                ("table", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders", to="branches.restauranttable")),
                ("updated_by", models.ForeignKey(blank=True, help_text="Staff member who last changed the status.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders_updated", to=settings.AUTH_USER_MODEL)),
                ("user", models.ForeignKey(blank=True, help_text="Staff member who placed the order (POS). Empty for QR orders.", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="orders_placed", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("base_price", models.DecimalField(decimal_places=2, max_digits=10)),
                ("modifier_total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("item_discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                ("price", models.DecimalField(decimal_places=2, help_text="Unit price at the time of order (base price plus modifiers).", max_digits=10)),
                ("selected_modifiers", models.JSONField(blank=True, default=list, help_text="Modifiers chosen at order time as {id, name, price} entries.")),
                ("remark", models.CharField(blank=True, help_text="Kitchen remark, e.g. '[Size: L] + Extra cheese no onions'", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="order_items", to="products.product")),
            ],
            options={
                "verbose_name": "Order Item",
                "verbose_name_plural": "Order Items",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="OrderHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cooking", "Cooking"), ("ready", "Ready"), ("in_service", "In Service"), ("paid", "Paid"), ("cancelled", "Cancelled")], max_length=20)),
                ("to_status", models.CharField(choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cooking", "Cooking"), ("ready", "Ready"), ("in_service", "In Service"), ("paid", "Paid"), ("cancelled", "Cancelled")], max_length=20)),
                ("note", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("order", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="histories", to="orders.order")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="order_histories", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Order History",
                "verbose_name_plural": "Order Histories",
                "ordering": ["created_at", "id"],
            },
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["branch", "status"], name="order_branch_status_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["branch", "business_date"], name="order_branch_day_idx"),
        ),
        migrations.AddIndex(
            model_name="order",
            index=models.Index(fields=["branch", "created_at"], name="order_branch_created_idx"),
        ),
        migrations.AddConstraint(
            model_name="order",
            constraint=models.UniqueConstraint(
                condition=models.Q(daily_sequence__isnull=False),
                fields=("branch", "business_date", "daily_sequence"),
                name="unique_daily_sequence_per_branch",
            ),
        ),
    ]
