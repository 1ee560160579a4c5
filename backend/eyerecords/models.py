import uuid
from django.db import models


class PatientRecordRow(models.Model):
    """patient_records 表的一行。右 / 左眼处方平铺成 right_eye_* / left_eye_* 列。"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    date = models.DateField()
    name = models.CharField(max_length=200)
    mobile = models.CharField(max_length=10, unique=True)
    right_eye_sphere = models.CharField(max_length=50, blank=True, default='')
    right_eye_cylinder = models.CharField(max_length=50, blank=True, default='')
    right_eye_axis = models.CharField(max_length=50, blank=True, default='')
    right_eye_add = models.CharField(max_length=50, blank=True, default='')
    left_eye_sphere = models.CharField(max_length=50, blank=True, default='')
    left_eye_cylinder = models.CharField(max_length=50, blank=True, default='')
    left_eye_axis = models.CharField(max_length=50, blank=True, default='')
    left_eye_add = models.CharField(max_length=50, blank=True, default='')
    frame_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    glass_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    remarks = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient_records'

    def __str__(self):
        return f"{self.name} ({self.mobile})"
