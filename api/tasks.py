import logging
from celery import shared_task
import pandas as pd
from .exceptions import LoanValidationError, StoreConstraintError
from .models import Loan
from .repository import LoanRepository
from .services import LoanService

logger = logging.getLogger(__name__)


def _to_text(value):
    if pd.isna(value) or not str(value).strip():
        raise ValueError("blank identifier")
    return str(value).strip()


def _to_float(value):
    if pd.isna(value):
        raise ValueError("blank amount")
    return float(value)


def _to_date(value):
    # Blank cells come through as NaT/NaN; validate_loan reports them
    if pd.isna(value):
        return None
    return pd.to_datetime(value).date()


def _to_bool(value):
    if pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'y')
    return bool(value)


def _row_to_loan(row):
    """Build an unsaved Loan from a spreadsheet row. Unreadable cells raise LoanValidationError."""
    try:
        return Loan(
            loan_id=_to_text(row['Loan ID']),
            customer_id=_to_text(row['Customer ID']),
            lender_id=_to_text(row['Lender ID']),
            amount=_to_float(row['Amount']),
            remaining_amount=_to_float(row['Remaining Amount']),
            payment_date=_to_date(row['Payment Date']),
            interest_per_day=_to_float(row['Interest Per Day']),
            due_date=_to_date(row['Due Date']),
            penalty_per_day=_to_float(row['Penalty Per Day']),
            cancelled=_to_bool(row.get('Cancelled', False)),
        )
    except (ValueError, TypeError, KeyError) as exc:
        raise LoanValidationError(f"Malformed row: {exc}") from exc


@shared_task
def ingest_loan_data(file_path):
    """
    Ingest loans from the provided Excel file. Each row goes through the same
    validation as the API; malformed, invalid or duplicate rows are skipped.
    """
    df = pd.read_excel(file_path)
    service = LoanService(LoanRepository())
    created = 0
    skipped = 0
    for index, row in df.iterrows():
        try:
            service.add_loan(_row_to_loan(row))
            created += 1
        except (LoanValidationError, StoreConstraintError) as exc:
            logger.warning(f"Skipped row {index} (loan {row.get('Loan ID')}) from {file_path}: {exc.message}")
            skipped += 1
    logger.info(f"Ingested {created} loans from {file_path}. {skipped} loans skipped.")
    return {'created': created, 'skipped': skipped}
