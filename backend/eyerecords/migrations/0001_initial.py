import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='PatientRecordRow',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('name', models.CharField(max_length=200)),
                ('mobile', models.CharField(max_length=10, unique=True)),
                ('right_eye_sphere', models.CharField(blank=True, default='', max_length=50)),
                ('right_eye_cylinder', models.CharField(blank=True, default='', max_length=50)),
                ('right_eye_axis', models.CharField(blank=True, default='', max_length=50)),
                ('right_eye_add', models.CharField(blank=True, default='', max_length=50)),
                ('left_eye_sphere', models.CharField(blank=True, default='', max_length=50)),
                ('left_eye_cylinder', models.CharField(blank=True, default='', max_length=50)),
                ('left_eye_axis', models.CharField(blank=True, default='', max_length=50)),
                ('left_eye_add', models.CharField(blank=True, default='', max_length=50)),
                ('frame_price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('glass_price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('total_price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('remarks', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'patient_records',
            },
        ),
    ]
