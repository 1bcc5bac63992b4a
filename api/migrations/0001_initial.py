from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Loan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('loan_id', models.CharField(max_length=255, unique=True)),
                ('customer_id', models.CharField(db_index=True, max_length=255)),
                ('lender_id', models.CharField(db_index=True, max_length=255)),
                ('amount', models.FloatField()),
                ('remaining_amount', models.FloatField()),
                ('payment_date', models.DateField()),
                ('interest_per_day', models.FloatField()),
                ('due_date', models.DateField()),
                ('penalty_per_day', models.FloatField()),
                ('cancelled', models.BooleanField(default=False)),
            ],
        ),
    ]
