# teacher_eval/management/commands/seed_indicators.py
from django.core.management.base import BaseCommand
from django.db import transaction

from teacher_eval.models import Indicator
from teacher_eval.services.indicators import replace_indicator_texts, weights_total

RUBRIC = {
    "1": {"description": "لا يطبق المعيار", "evidence": ""},
    "2": {"description": "يطبق المعيار بشكل محدود", "evidence": ""},
    "3": {"description": "يطبق المعيار بشكل مقبول", "evidence": ""},
    "4": {"description": "يطبق المعيار بشكل جيد", "evidence": ""},
    "5": {"description": "يطبق المعيار بشكل متميز", "evidence": ""},
}

# (text, weight, criteria, verification)
DEFAULT_INDICATORS = [
    ("أداء الواجبات الوظيفية", 10,
     ["التقيد بالدوام الرسمي", "تأدية الحصص وفق الجدول الدراسي"],
     ["سجل الدوام", "سجل المناوبة والإشراف"]),
    ("التفاعل مع المجتمع المهني", 10,
     ["المشاركة في مجتمعات التعلم المهنية", "تبادل الزيارات مع الزملاء"],
     ["سجل مجتمعات التعلم", "نماذج تبادل الزيارات"]),
    ("التفاعل مع أولياء الأمور", 10,
     ["التواصل الفاعل مع أولياء الأمور", "إشراك أولياء الأمور في تعلم أبنائهم"],
     ["سجل التواصل مع أولياء الأمور"]),
    ("التنويع في استراتيجيات التدريس", 10,
     ["استخدام استراتيجيات تدريس متنوعة", "مراعاة الفروق الفردية"],
     ["تقرير عن استراتيجيات التعلم المستخدمة"]),
    ("تحسين نتائج المتعلمين", 10,
     ["معالجة الفاقد التعليمي", "وضع الخطط العلاجية"],
     ["الخطط العلاجية", "مقارنة نتائج الاختبارات"]),
    ("إعداد وتنفيذ خطة التعلم", 10,
     ["إعداد الدروس وفق الخطة", "تنفيذ الخطة في الوقت المحدد"],
     ["توزيع المنهج", "نماذج من إعداد الدروس"]),
    ("توظيف تقنيات ووسائل التعلم المناسبة", 10,
     ["توظيف التقنية في التعليم", "استخدام الوسائل التعليمية المناسبة"],
     ["نماذج من الوسائل التعليمية"]),
    ("تهيئة البيئة التعليمية", 5,
     ["مراعاة حاجات الطلاب", "التهيئة النفسية والمادية للطلاب"],
     ["صور لبيئة الصف"]),
    ("الإدارة الصفية", 5,
     ["ضبط سلوك الطلاب", "شد انتباه الطلاب"],
     ["سجل متابعة السلوك"]),
    ("تحليل نتائج المتعلمين وتشخيص مستوياتهم", 10,
     ["تحليل نتائج الاختبارات", "تصنيف الطلاب حسب نتائجهم"],
     ["تحليل نتائج الاختبارات"]),
    ("تنوع أساليب التقويم", 10,
     ["تطبيق الاختبارات الورقية والإلكترونية", "تنويع أساليب التقويم"],
     ["نماذج من الاختبارات", "ملف إنجاز الطالب"]),
]


class Command(BaseCommand):
    help = "Seed the default evaluation indicators (weights add up to 100)."

    def add_arguments(self, parser):
        parser.add_argument("--reset", action="store_true",
                            help="Delete every existing indicator first.")

    @transaction.atomic
    def handle(self, *args, **options):
        if options["reset"]:
            Indicator.objects.all().delete()

        created = 0
        for order, (text, weight, criteria, verification) in enumerate(DEFAULT_INDICATORS, start=1):
            indicator, was_created = Indicator.objects.get_or_create(
                text=text,
                defaults=dict(weight=weight, sort_order=order, rubric=RUBRIC),
            )
            if was_created:
                replace_indicator_texts(indicator, criteria, verification)
                created += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {created} indicators (total weight {weights_total()})."
        ))
