import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from accounts.models import Role
from teacher_eval.models import Teacher, SchoolMembership

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Teacher)
def _grant_teacher_access(sender, instance, **kwargs):
    """A teacher linked to a login gets a TEACHER grant on their school."""
    if instance.user_id and instance.school_id:
        _, created = SchoolMembership.objects.get_or_create(
            user_id=instance.user_id, school_id=instance.school_id, role=Role.TEACHER
        )
        if created:
            logger.info("Granted TEACHER access on school %s to user %s",
                        instance.school_id, instance.user_id)
