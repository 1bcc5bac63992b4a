import logging
from django.db import IntegrityError, transaction
from .exceptions import StoreConstraintError
from .models import Loan

logger = logging.getLogger(__name__)


class LoanRepository:
    """Loan store backed by the Django ORM."""

    def find_all(self):
        return list(Loan.objects.order_by('id'))

    def find_by_id(self, pk):
        return Loan.objects.filter(pk=pk).first()

    def find_by_loan_id(self, loan_id):
        return Loan.objects.filter(loan_id=loan_id).first()

    def find_by_customer_id(self, customer_id):
        return list(Loan.objects.filter(customer_id=customer_id).order_by('id'))

    def find_by_lender_id(self, lender_id):
        return list(Loan.objects.filter(lender_id=lender_id).order_by('id'))

    def save(self, loan):
        """Persist the loan, assigning its id. Integrity failures raise StoreConstraintError."""
        try:
            with transaction.atomic():
                loan.save()
        except IntegrityError as exc:
            logger.error(f"Store rejected loan {loan.loan_id}: {exc}")
            raise StoreConstraintError(str(exc)) from exc
        return loan
