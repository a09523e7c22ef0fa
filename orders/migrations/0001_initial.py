import django.db.models.deletion
from django.db import migrations, models

import orders.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.CharField(default=orders.models.new_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("phone", models.CharField(max_length=10, unique=True)),
                ("token", models.CharField(max_length=64, unique=True)),
                ("verified", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.CharField(default=orders.models.new_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120)),
                ("phone", models.CharField(max_length=10)),
                ("token", models.CharField(max_length=64)),
                ("copies", models.PositiveIntegerField()),
                ("total_pages", models.PositiveIntegerField()),
                ("total_amount", models.IntegerField()),
                ("files", models.JSONField(default=list)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("COMPLETED", "Completed"), ("CANCELLED", "Cancelled")], default="PENDING", max_length=16)),
                ("payment_status", models.CharField(choices=[("PENDING", "Pending"), ("PAID", "Paid"), ("VERIFIED", "Verified")], default="PENDING", max_length=16)),
                ("notes", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("version", models.IntegerField(default=0)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="orders", to="orders.customer")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "payment_status"], name="order_status_payment_idx"),
                    models.Index(fields=["phone"], name="order_phone_idx"),
                ],
            },
        ),
    ]
