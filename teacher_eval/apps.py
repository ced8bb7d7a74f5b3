from django.apps import AppConfig


class TeacherEvalConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'teacher_eval'

    def ready(self):
        import teacher_eval.signals  # noqa: F401
