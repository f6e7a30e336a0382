from django.core.management.base import BaseCommand, CommandError

from quotations.services.criteria_config import (
    CriteriaConfigurationError,
    load_criteria_config,
    sync_criteria,
)


class Command(BaseCommand):
    help = "Load market complexity criteria from JSON into the database (idempotent)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--path",
            default=None,
            help="Criteria JSON file (defaults to settings.COMPLEXITY_CRITERIA_PATH)",
        )
        parser.add_argument(
            "--deactivate-missing",
            action="store_true",
            help="Deactivate criteria that are not in the file",
        )

    def handle(self, *args, **options):
        try:
            config = load_criteria_config(options["path"])
            counts = sync_criteria(config, deactivate_missing=options["deactivate_missing"])
        except CriteriaConfigurationError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"Complexity criteria ready (created {counts['created']}, "
            f"updated {counts['updated']}, deactivated {counts['deactivated']})."
        ))
