from django.core.management.base import BaseCommand
from api.tasks import ingest_loan_data

class Command(BaseCommand):
    help = 'Ingest loans from an Excel file'

    def add_arguments(self, parser):
        parser.add_argument('file_path', nargs='?', default='loan_data.xlsx')

    def handle(self, *args, **options):
        # Call the ingestion function directly (not as a Celery task)
        result = ingest_loan_data(options['file_path'])
        self.stdout.write(self.style.SUCCESS(
            f"Loan ingestion completed: {result['created']} created, {result['skipped']} skipped."
        ))
