import logging

from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Project, ProjectMember

logger = logging.getLogger("taskboard.projects")


@receiver(post_save, sender=Project)
def ensure_owner_membership(sender, instance, created, **kwargs):
    """The owner is always a member with the OWNER role."""
    if not created:
        return

    ProjectMember.objects.update_or_create(
        project=instance,
        user=instance.owner,
        defaults={"role": ProjectMember.ROLE_OWNER},
    )
    logger.info("Project created: project=%s, owner=%s", instance.pk, instance.owner_id)


@receiver(post_delete, sender=Project)
def log_project_deleted(sender, instance, **kwargs):
    logger.info("Project deleted: project=%s, owner=%s", instance.pk, instance.owner_id)
