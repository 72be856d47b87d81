import branches.models
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Branch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("slug", models.SlugField(max_length=160, unique=True)),
                ("timezone", models.CharField(default=branches.models.default_branch_timezone, help_text="IANA timezone name. Daily ticket numbering resets at local midnight.", max_length=64)),
                ("requires_cancel_note", models.BooleanField(default=False, help_text="Staff must give a reason when cancelling an order.")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Branch",
                "verbose_name_plural": "Branches",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="DeliveryPartner",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100)),
                ("discount_percentage", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Order-level discount granted on this partner's orders.", max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal("0")), django.core.validators.MaxValueValidator(Decimal("100"))])),
                ("is_discount_active", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="delivery_partners", to="branches.branch")),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RestaurantTable",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("table_number", models.CharField(max_length=20)),
                ("qr_code_token", models.CharField(default=branches.models.generate_qr_token, editable=False, max_length=64, unique=True)),
                ("capacity", models.PositiveIntegerField(default=4)),
                ("is_active", models.BooleanField(default=True)),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tables", to="branches.branch")),
            ],
            options={
                "ordering": ["branch", "table_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="restauranttable",
            constraint=models.UniqueConstraint(fields=("branch", "table_number"), name="unique_table_number_per_branch"),
        ),
    ]
