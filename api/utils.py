from dataclasses import dataclass

from .exceptions import LoanValidationError

GROUP_BY_LENDER = 'Lender'
GROUP_BY_CUSTOMER = 'Customer'
GROUP_BY_INTEREST = 'Interest'


@dataclass
class LoanAggregate:
    """Totals over a set of loans, labeled by the grouping dimension used."""

    group_by: str
    total_remaining_amount: float = 0.0
    total_interest: float = 0.0
    total_penalty: float = 0.0


def validate_loan(loan):
    """
    Check a loan before it is handed to the store.
    The payment date may equal the due date but never fall after it.
    """
    if loan.payment_date is None or loan.due_date is None:
        raise LoanValidationError("Payment date and due date are required")
    if loan.payment_date > loan.due_date:
        raise LoanValidationError("Payment date cannot be greater than the due date")


def group_loans(loans, key):
    """Partition loans into a dict of key -> list of loans, in first-seen order."""
    groups = {}
    for loan in loans:
        groups.setdefault(key(loan), []).append(loan)
    return groups


def summarize_groups(group_by, groups):
    """
    Fold every loan of every group into a single LoanAggregate:
      total_remaining_amount = sum(remaining_amount)
      total_interest = sum(interest_per_day * amount)
      total_penalty = sum(penalty_per_day * amount)
    No rounding is applied.
    """
    aggregate = LoanAggregate(group_by=group_by)
    for loans in groups.values():
        for loan in loans:
            aggregate.total_remaining_amount += loan.remaining_amount
            aggregate.total_interest += loan.interest_per_day * loan.amount
            aggregate.total_penalty += loan.penalty_per_day * loan.amount
    return aggregate


def aggregate_loans(loans, key, group_by):
    """
    Group loans by key and total them. The key only decides the partitioning,
    so the totals are the same for every key; group_by labels the result.
    """
    return summarize_groups(group_by, group_loans(loans, key))
