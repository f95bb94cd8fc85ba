"""
Add celery-beat schedule for the stuck fulfillment recovery sweep.

The sweep moves records whose fulfillment lock is older than
FULFILLMENT_STALE_AFTER_MINUTES back to pending. It is registered
disabled: a released record is renewed again on the next webhook or
poll, so operators enable it once they have confirmed the panel did not
apply the stuck renewal.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the (disabled) periodic task for the recovery sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=5,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name="Recover Stuck Fulfillments",
        defaults={
            "task": "payments.tasks.recover_stuck_fulfillments",
            "interval": schedule,
            "enabled": False,
            "description": (
                "Releases fulfillment locks held past the stale threshold "
                "so the next webhook or poll can retry the renewal."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name="Recover Stuck Fulfillments").delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
