# Generated manually for the minority type listing filter

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("marketplace", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="business",
            name="minority_type",
            field=models.CharField(blank=True, max_length=60),
        ),
        migrations.AddField(
            model_name="product",
            name="minority_type",
            field=models.CharField(blank=True, max_length=60),
        ),
    ]
