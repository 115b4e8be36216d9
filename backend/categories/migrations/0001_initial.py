import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("type", models.CharField(choices=[("Asset", "Asset"), ("Liability", "Liability"), ("Equity", "Equity"), ("Revenue", "Revenue"), ("COGS", "Cost of Goods Sold"), ("Expense", "Expense")], max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="categories", to="accounts.company")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="categories.category")),
            ],
            options={
                "db_table": "chart_of_accounts",
                "indexes": [
                    models.Index(fields=["company", "name"], name="coa_company_name_idx"),
                    models.Index(fields=["company", "parent"], name="coa_company_parent_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="transactions", to="accounts.company")),
                ("corresponding_category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="corresponding_transactions", to="categories.category")),
                ("selected_category", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="selected_transactions", to="categories.category")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["company", "date"], name="txn_company_date_idx"),
                ],
            },
        ),
    ]
