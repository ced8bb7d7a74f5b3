from django.db import models
import uuid
from django.utils import timezone
from django.contrib.auth.models import AbstractUser


class Role(models.TextChoices):
    ADMIN     = "ADMIN",     "مدير النظام"
    PRINCIPAL = "PRINCIPAL", "مدير المدرسة"
    EVALUATOR = "EVALUATOR", "المقيم"
    TEACHER   = "TEACHER",   "المعلم"


class User(AbstractUser):
    """
    One login identity per person.
    School-level access comes from SchoolMembership grants (teacher_eval),
    so a teacher working at two schools is still a single account.
    `role` is the primary role shown at login.
    """
    user_id     = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name        = models.CharField(max_length=120)
    email       = models.EmailField(unique=True)
    national_id = models.CharField(max_length=20, blank=True, default="")
    phone       = models.CharField(max_length=30, blank=True)
    role        = models.CharField(max_length=10, choices=Role.choices, default=Role.TEACHER)
    is_default_password = models.BooleanField(default=False)
    password_last_changed = models.DateTimeField(null=True, blank=True)
    created_at  = models.DateTimeField(default=timezone.now)
    updated_at  = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name or self.get_full_name() or self.username

    @property
    def is_system_admin(self):
        return self.role == Role.ADMIN
