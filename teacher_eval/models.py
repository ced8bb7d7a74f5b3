import uuid
from django.db import models
from django.utils import timezone
from django.conf import settings

# ── Lookup / Enum helpers ────────────────────────────────────────────────

class TeacherCategory(models.TextChoices):
    TEACHER      = "TEACHER",      "معلم"
    KINDERGARTEN = "KINDERGARTEN", "معلمة روضة"
    ACTIVITY     = "ACTIVITY",     "معلم مسند له نشاط طلابي"
    HEALTH       = "HEALTH",       "معلم مسند له توجيه صحي"
    LAB          = "LAB",          "محضر مختبر"
    COUNSELOR    = "COUNSELOR",    "موجه طلابي"
    DEPUTY       = "DEPUTY",       "وكيل مدرسة"
    MANAGER      = "MANAGER",      "مدير مدرسة"

class EvalStatus(models.TextChoices):
    DRAFT     = "DRAFT",     "مسودة"
    COMPLETED = "COMPLETED", "مقيم"

class ObjectionStatus(models.TextChoices):
    NONE     = "NONE",     "لا يوجد اعتراض"
    PENDING  = "PENDING",  "قيد المراجعة"
    ACCEPTED = "ACCEPTED", "تم القبول"
    REJECTED = "REJECTED", "مرفوض"

class PlanName(models.TextChoices):
    BASIC      = "BASIC",      "Basic"
    PREMIUM    = "PREMIUM",    "Premium"
    ENTERPRISE = "ENTERPRISE", "Enterprise"

class SubscriptionStatus(models.TextChoices):
    ACTIVE  = "ACTIVE",  "Active"
    EXPIRED = "EXPIRED", "Expired"
    PENDING = "PENDING", "Pending"

class EventType(models.TextChoices):
    EVALUATION = "EVALUATION", "Evaluation"
    AUDIT      = "AUDIT",      "Audit"
    OBJECTION  = "OBJECTION",  "Objection"
    OTHER      = "OTHER",      "Other"

class EventStatus(models.TextChoices):
    ACTIVE   = "ACTIVE",   "Active"
    UPCOMING = "UPCOMING", "Upcoming"
    CLOSED   = "CLOSED",   "Closed"

# ── Schools & people ─────────────────────────────────────────────────────
class School(models.Model):
    school_id           = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name                = models.CharField(max_length=180)
    stage               = models.CharField(max_length=60, blank=True)   # e.g. 'الابتدائية'
    type                = models.CharField(max_length=60, blank=True)   # e.g. 'بنين'
    ministry_id         = models.CharField(max_length=40, blank=True)
    education_office    = models.CharField(max_length=120, blank=True)
    academic_year       = models.CharField(max_length=20, blank=True)
    manager_name        = models.CharField(max_length=120, blank=True)
    manager_national_id = models.CharField(max_length=20, blank=True)
    evaluator_name      = models.CharField(max_length=120, blank=True)
    created_at          = models.DateTimeField(default=timezone.now)
    updated_at          = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


class SchoolMembership(models.Model):
    """A (school, role) grant held by one login identity."""
    membership_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user          = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="memberships")
    school        = models.ForeignKey(School, on_delete=models.CASCADE, related_name="memberships")
    role          = models.CharField(max_length=10)
    created_at    = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "school", "role"], name="uniq_grant_per_school_role")
        ]


class Specialty(models.Model):
    specialty_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name         = models.CharField(max_length=120, unique=True)
    created_at   = models.DateTimeField(default=timezone.now)


class Teacher(models.Model):
    teacher_id  = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    national_id = models.CharField(max_length=20, unique=True)
    name        = models.CharField(max_length=120)
    specialty   = models.CharField(max_length=120, blank=True)
    category    = models.CharField(max_length=14, choices=TeacherCategory.choices, default=TeacherCategory.TEACHER)
    mobile      = models.CharField(max_length=30, blank=True)
    school      = models.ForeignKey(School, on_delete=models.SET_NULL, null=True, blank=True, related_name="teachers")
    user        = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="teacher_profile")
    created_at  = models.DateTimeField(default=timezone.now)
    updated_at  = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name


# ── Indicator configuration ----------------------------------------------
class Indicator(models.Model):
    indicator_id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    text                  = models.CharField(max_length=255)
    description           = models.TextField(blank=True)
    weight                = models.DecimalField(max_digits=6, decimal_places=2)
    sort_order            = models.PositiveIntegerField(default=0)
    rubric                = models.JSONField(default=dict, blank=True)   # {"1": {"description", "evidence"}, ... "5": {...}}
    applicable_categories = models.JSONField(default=list, blank=True)   # [] = every category
    category_weights      = models.JSONField(default=dict, blank=True)   # {category: weight}
    created_at            = models.DateTimeField(default=timezone.now)
    updated_at            = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["sort_order", "created_at"]

    def __str__(self):
        return self.text

    @property
    def criteria_texts(self):
        return [c.text for c in self.criteria.all()]

    @property
    def verification_texts(self):
        return [v.text for v in self.verification_indicators.all()]


class EvaluationCriterion(models.Model):
    criterion_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    indicator    = models.ForeignKey(Indicator, on_delete=models.CASCADE, related_name="criteria")
    text         = models.TextField()
    position     = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]


class VerificationIndicator(models.Model):
    verification_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    indicator       = models.ForeignKey(Indicator, on_delete=models.CASCADE, related_name="verification_indicators")
    text            = models.TextField()
    position        = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position"]


# ── Evaluations ---------------------------------------------------------
class Evaluation(models.Model):
    evaluation_id          = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    teacher                = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name="evaluations")
    school                 = models.ForeignKey(School, on_delete=models.SET_NULL, null=True, blank=True, related_name="evaluations")
    period_name            = models.CharField(max_length=60)     # e.g. 'الربع الأول'
    eval_date              = models.DateField(default=timezone.localdate)
    scores                 = models.JSONField(default=dict, blank=True)   # {indicator_id: EvaluationScore}
    total_score            = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    general_notes          = models.TextField(blank=True)
    status                 = models.CharField(max_length=10, choices=EvalStatus.choices, default=EvalStatus.DRAFT)
    evaluator_name         = models.CharField(max_length=120, blank=True)
    manager_name           = models.CharField(max_length=120, blank=True)
    objection_text         = models.TextField(blank=True)
    objection_status       = models.CharField(max_length=10, choices=ObjectionStatus.choices, default=ObjectionStatus.NONE)
    teacher_evidence_links = models.JSONField(default=list, blank=True)   # [{indicator_id, url, description}]
    created_at             = models.DateTimeField(default=timezone.now)
    updated_at             = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["teacher", "period_name"], name="uniq_eval_per_teacher_period")
        ]


# ── Subscriptions & events ------------------------------------------------
class Subscription(models.Model):
    subscription_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    school          = models.ForeignKey(School, on_delete=models.CASCADE, related_name="subscriptions")
    plan_name       = models.CharField(max_length=10, choices=PlanName.choices, default=PlanName.BASIC)
    start_date      = models.DateField()
    end_date        = models.DateField()
    status          = models.CharField(max_length=8, choices=SubscriptionStatus.choices, default=SubscriptionStatus.ACTIVE)
    price           = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    created_at      = models.DateTimeField(default=timezone.now)


class SchoolEvent(models.Model):
    event_id    = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name        = models.CharField(max_length=180)
    type        = models.CharField(max_length=10, choices=EventType.choices, default=EventType.EVALUATION)
    start_date  = models.DateField()
    end_date    = models.DateField()
    status      = models.CharField(max_length=8, choices=EventStatus.choices, default=EventStatus.UPCOMING)
    description = models.TextField(blank=True)
    school      = models.ForeignKey(School, on_delete=models.CASCADE, null=True, blank=True, related_name="events")
    created_at  = models.DateTimeField(default=timezone.now)
