import django.core.validators
import django.db.models.deletion
import uuid
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('members', '0001_initial'),
        ('groups', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('description', models.CharField(max_length=255)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('split_mode', models.CharField(choices=[('equal', 'Equal'), ('shares', 'Shares'), ('percentage', 'Percentage')], default='equal', max_length=20)),
                ('category', models.CharField(choices=[('food', 'Food'), ('accommodation', 'Accommodation'), ('transport', 'Transport'), ('entertainment', 'Entertainment'), ('other', 'Other')], default='other', max_length=20)),
                ('position', models.PositiveIntegerField(default=0)),
                ('date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='expenses', to='groups.group')),
                ('payer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='paid_expenses', to='members.member')),
            ],
            options={
                'db_table': 'expenses',
                'ordering': ['group', 'position'],
                'indexes': [
                    models.Index(fields=['group', 'position'], name='expenses_group_position_idx'),
                    models.Index(fields=['payer', 'date'], name='expenses_payer_date_idx'),
                    models.Index(fields=['group', 'category'], name='expenses_group_category_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ExpenseShare',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('weight', models.DecimalField(blank=True, decimal_places=4, max_digits=9, null=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('position', models.PositiveIntegerField(default=0)),
                ('expense', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='expenses.expense')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='expense_shares', to='members.member')),
            ],
            options={
                'db_table': 'expense_shares',
                'ordering': ['expense', 'position'],
                'indexes': [
                    models.Index(fields=['member'], name='expense_shares_member_idx'),
                ],
                'unique_together': {('expense', 'member')},
            },
        ),
    ]
