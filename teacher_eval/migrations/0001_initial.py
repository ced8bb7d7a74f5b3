import django.db.models.deletion
import django.utils.timezone
import uuid
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="School",
            fields=[
                ("school_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=180)),
                ("stage", models.CharField(blank=True, max_length=60)),
                ("type", models.CharField(blank=True, max_length=60)),
                ("ministry_id", models.CharField(blank=True, max_length=40)),
                ("education_office", models.CharField(blank=True, max_length=120)),
                ("academic_year", models.CharField(blank=True, max_length=20)),
                ("manager_name", models.CharField(blank=True, max_length=120)),
                ("manager_national_id", models.CharField(blank=True, max_length=20)),
                ("evaluator_name", models.CharField(blank=True, max_length=120)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Specialty",
            fields=[
                ("specialty_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=120, unique=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
        ),
        migrations.CreateModel(
            name="Indicator",
            fields=[
                ("indicator_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("text", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("weight", models.DecimalField(decimal_places=2, max_digits=6)),
                ("sort_order", models.PositiveIntegerField(default=0)),
                ("rubric", models.JSONField(blank=True, default=dict)),
                ("applicable_categories", models.JSONField(blank=True, default=list)),
                ("category_weights", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["sort_order", "created_at"],
            },
        ),
        migrations.CreateModel(
            name="EvaluationCriterion",
            fields=[
                ("criterion_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("text", models.TextField()),
                ("position", models.PositiveIntegerField(default=0)),
                ("indicator", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="criteria", to="teacher_eval.indicator")),
            ],
            options={
                "ordering": ["position"],
            },
        ),
        migrations.CreateModel(
            name="VerificationIndicator",
            fields=[
                ("verification_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("text", models.TextField()),
                ("position", models.PositiveIntegerField(default=0)),
                ("indicator", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="verification_indicators", to="teacher_eval.indicator")),
            ],
            options={
                "ordering": ["position"],
            },
        ),
        migrations.CreateModel(
            name="Teacher",
            fields=[
                ("teacher_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("national_id", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=120)),
                ("specialty", models.CharField(blank=True, max_length=120)),
                ("category", models.CharField(choices=[("TEACHER", "معلم"), ("KINDERGARTEN", "معلمة روضة"), ("ACTIVITY", "معلم مسند له نشاط طلابي"), ("HEALTH", "معلم مسند له توجيه صحي"), ("LAB", "محضر مختبر"), ("COUNSELOR", "موجه طلابي"), ("DEPUTY", "وكيل مدرسة"), ("MANAGER", "مدير مدرسة")], default="TEACHER", max_length=14)),
                ("mobile", models.CharField(blank=True, max_length=30)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("school", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="teachers", to="teacher_eval.school")),
                ("user", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="teacher_profile", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name="Evaluation",
            fields=[
                ("evaluation_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("period_name", models.CharField(max_length=60)),
                ("eval_date", models.DateField(default=django.utils.timezone.localdate)),
                ("scores", models.JSONField(blank=True, default=dict)),
                ("total_score", models.DecimalField(decimal_places=2, default=0, max_digits=6)),
                ("general_notes", models.TextField(blank=True)),
                ("status", models.CharField(choices=[("DRAFT", "مسودة"), ("COMPLETED", "مقيم")], default="DRAFT", max_length=10)),
                ("evaluator_name", models.CharField(blank=True, max_length=120)),
                ("manager_name", models.CharField(blank=True, max_length=120)),
                ("objection_text", models.TextField(blank=True)),
                ("objection_status", models.CharField(choices=[("NONE", "لا يوجد اعتراض"), ("PENDING", "قيد المراجعة"), ("ACCEPTED", "تم القبول"), ("REJECTED", "مرفوض")], default="NONE", max_length=10)),
                ("teacher_evidence_links", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("school", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="evaluations", to="teacher_eval.school")),
                ("teacher", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="evaluations", to="teacher_eval.teacher")),
            ],
        ),
        migrations.AddConstraint(
            model_name="evaluation",
            constraint=models.UniqueConstraint(fields=("teacher", "period_name"), name="uniq_eval_per_teacher_period"),
        ),
        migrations.CreateModel(
            name="SchoolMembership",
            fields=[
                ("membership_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("role", models.CharField(max_length=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to="teacher_eval.school")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="memberships", to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddConstraint(
            model_name="schoolmembership",
            constraint=models.UniqueConstraint(fields=("user", "school", "role"), name="uniq_grant_per_school_role"),
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("subscription_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("plan_name", models.CharField(choices=[("BASIC", "Basic"), ("PREMIUM", "Premium"), ("ENTERPRISE", "Enterprise")], default="BASIC", max_length=10)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("EXPIRED", "Expired"), ("PENDING", "Pending")], default="ACTIVE", max_length=8)),
                ("price", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("school", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="subscriptions", to="teacher_eval.school")),
            ],
        ),
        migrations.CreateModel(
            name="SchoolEvent",
            fields=[
                ("event_id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=180)),
                ("type", models.CharField(choices=[("EVALUATION", "Evaluation"), ("AUDIT", "Audit"), ("OBJECTION", "Objection"), ("OTHER", "Other")], default="EVALUATION", max_length=10)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("status", models.CharField(choices=[("ACTIVE", "Active"), ("UPCOMING", "Upcoming"), ("CLOSED", "Closed")], default="UPCOMING", max_length=8)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("school", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="events", to="teacher_eval.school")),
            ],
        ),
    ]
