import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('addresses', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AllowedVisitor',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('first_name', models.CharField(blank=True, max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('access_code', models.CharField(blank=True, db_index=True, max_length=6)),
                ('expires_at', models.DateTimeField()),
                ('is_active', models.BooleanField(default=True)),
                ('last_used', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('address', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='visitors', to='addresses.memberaddress')),
            ],
            options={
                'verbose_name': 'Allowed Visitor',
                'verbose_name_plural': 'Allowed Visitors',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='VisitorCheckIn',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('check_in_time', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('entry_method', models.CharField(choices=[('NAME_VERIFICATION', 'Name Verification'), ('ACCESS_CODE', 'Access Code')], default='NAME_VERIFICATION', max_length=20)),
                ('notes', models.TextField(blank=True)),
                ('first_name', models.CharField(blank=True, max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('unregistered_address', models.CharField(blank=True, max_length=500)),
                ('address', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='check_ins', to='addresses.memberaddress')),
                ('checked_in_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='check_ins', to=settings.AUTH_USER_MODEL)),
                ('visitor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='check_ins', to='visitors.allowedvisitor')),
            ],
            options={
                'verbose_name': 'Visitor Check-In',
                'verbose_name_plural': 'Visitor Check-Ins',
                'ordering': ['-check_in_time'],
            },
        ),
    ]
