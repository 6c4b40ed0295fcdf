from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone


BLOOD_GROUP_CHOICES = [('A+', 'A+'), ('A-', 'A-'), ('B+', 'B+'), ('B-', 'B-'), ('AB+', 'AB+'), ('AB-', 'AB-'), ('O+', 'O+'), ('O-', 'O-')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BloodBank',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('hospital_name', models.CharField(max_length=120)),
                ('category', models.CharField(max_length=40)),
                ('contact_person', models.CharField(max_length=80)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('contact_no', models.CharField(max_length=20)),
                ('license_no', models.CharField(max_length=40, unique=True)),
                ('address', models.CharField(max_length=255)),
                ('pincode', models.CharField(max_length=12)),
                ('city', models.CharField(max_length=40)),
                ('version', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='bloodbank', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='StockBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('component', models.CharField(choices=[('Whole Blood', 'Whole Blood'), ('Single Plasma', 'Single Plasma'), ('Single Platelet', 'Single Platelet')], max_length=20)),
                ('bloodgroup', models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=10)),
                ('city', models.CharField(choices=[('Ahmedabad', 'Ahmedabad'), ('Delhi', 'Delhi'), ('Mumbai', 'Mumbai'), ('Lucknow', 'Lucknow'), ('Bangalore', 'Bangalore')], max_length=40)),
                ('units', models.PositiveIntegerField(default=0)),
                ('expiry_date', models.DateTimeField()),
                ('added_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ('counted', models.BooleanField(default=True)),
                ('bank', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='batches', to='bloodbank.bloodbank')),
            ],
            options={
                'verbose_name': 'Stock Batch',
                'verbose_name_plural': 'Stock Batches',
                'ordering': ['id'],
                'indexes': [
                    models.Index(fields=['bank', 'bloodgroup'], name='stockbatch_bank_group_idx'),
                    models.Index(fields=['expiry_date'], name='stockbatch_expiry_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StockSummary',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bloodgroup', models.CharField(choices=BLOOD_GROUP_CHOICES, max_length=10)),
                ('units', models.PositiveIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)])),
                ('bank', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='summary_rows', to='bloodbank.bloodbank')),
            ],
            options={
                'verbose_name': 'Stock Summary',
                'verbose_name_plural': 'Stock Summaries',
                'ordering': ['bank_id', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='stocksummary',
            constraint=models.UniqueConstraint(fields=('bank', 'bloodgroup'), name='unique_summary_per_bank_group'),
        ),
    ]
