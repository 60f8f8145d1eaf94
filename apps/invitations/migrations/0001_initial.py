import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('trips', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TripInvitation',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('invited_email', models.EmailField(max_length=254)),
                ('role', models.PositiveSmallIntegerField(choices=[(0, 'Owner'), (1, 'Organizer'), (2, 'Member')], default=2)),
                ('can_edit', models.BooleanField(default=False)),
                ('status', models.PositiveSmallIntegerField(choices=[(0, 'Pending'), (1, 'Accepted'), (2, 'Declined'), (3, 'Cancelled')], db_index=True, default=0)),
                ('message', models.CharField(blank=True, default='', max_length=500)),
                ('responded_at', models.DateTimeField(blank=True, null=True)),
                ('invited_by', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sent_invitations', to=settings.AUTH_USER_MODEL)),
                ('invited_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='received_invitations', to=settings.AUTH_USER_MODEL)),
                ('trip', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='invitations', to='trips.trip')),
            ],
            options={
                'db_table': 'trip_invitations',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['invited_email', 'status'], name='ix_invitation_email_status')],
                'constraints': [models.UniqueConstraint(condition=models.Q(('status', 0)), fields=('trip', 'invited_email'), name='uq_pending_invitation_per_email')],
            },
        ),
    ]
