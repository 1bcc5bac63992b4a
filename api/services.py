import logging
from operator import attrgetter
from .exceptions import LoanNotFoundError, LoanValidationError
from .utils import (
    GROUP_BY_CUSTOMER,
    GROUP_BY_INTEREST,
    GROUP_BY_LENDER,
    aggregate_loans,
    validate_loan,
)

logger = logging.getLogger(__name__)


class LoanService:
    """
    Loan lookups, creation and aggregation over an injected loan store.

    The store must provide find_all, find_by_loan_id, find_by_customer_id,
    find_by_lender_id and save (see api.repository.LoanRepository).
    """

    def __init__(self, repository):
        self.repository = repository

    def get_all_loans(self):
        logger.info("Retrieving all loans.")
        return self.repository.find_all()

    def add_loan(self, loan):
        """Validate the loan and save it. Nothing is written if validation fails."""
        logger.info(f"Adding a new loan: {loan}")
        try:
            validate_loan(loan)
        except LoanValidationError as exc:
            logger.error(f"Rejected loan {loan.loan_id}: {exc.message}")
            raise
        saved_loan = self.repository.save(loan)
        logger.info(f"Loan added successfully with ID: {saved_loan.id}")
        return saved_loan

    def get_loan_by_loan_id(self, loan_id):
        logger.info(f"Retrieving loan by loan ID: {loan_id}")
        loan = self.repository.find_by_loan_id(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    def get_loans_by_customer_id(self, customer_id):
        logger.info(f"Retrieving loans by customer ID: {customer_id}")
        return self.repository.find_by_customer_id(customer_id)

    def get_loans_by_lender_id(self, lender_id):
        logger.info(f"Retrieving loans by lender ID: {lender_id}")
        return self.repository.find_by_lender_id(lender_id)

    def aggregate_loans_by_lender(self):
        return self._aggregate(attrgetter('lender_id'), GROUP_BY_LENDER)

    def aggregate_loans_by_customer_id(self):
        return self._aggregate(attrgetter('customer_id'), GROUP_BY_CUSTOMER)

    def aggregate_loans_by_interest(self):
        return self._aggregate(attrgetter('interest_per_day'), GROUP_BY_INTEREST)

    def _aggregate(self, key, group_by):
        logger.info(f"Aggregating loans by {group_by.lower()}.")
        aggregate = aggregate_loans(self.repository.find_all(), key, group_by)
        logger.info(f"Aggregated loans by {group_by.lower()}: {aggregate}")
        return aggregate
