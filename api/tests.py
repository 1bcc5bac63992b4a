from datetime import date, timedelta
from io import StringIO
from operator import attrgetter
from unittest import mock

import pandas as pd
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APIRequestFactory, APITestCase
from rest_framework import status
from .exceptions import LoanNotFoundError, LoanValidationError, StoreConstraintError
from .models import Loan
from .repository import LoanRepository
from .services import LoanService
from .tasks import ingest_loan_data
from .utils import aggregate_loans, group_loans, summarize_groups, validate_loan
from .views import AddLoanView, AllLoansView, ViewLoanView

# Create your tests here.

def make_loan(loan_id="L1", customer_id="C1", lender_id="LEN1", amount=10000.0,
              remaining_amount=10000.0, interest_per_day=0.01, penalty_per_day=0.01,
              payment_date=date(2024, 1, 10), due_date=date(2024, 2, 10), cancelled=False):
    return Loan(
        loan_id=loan_id,
        customer_id=customer_id,
        lender_id=lender_id,
        amount=amount,
        remaining_amount=remaining_amount,
        payment_date=payment_date,
        interest_per_day=interest_per_day,
        due_date=due_date,
        penalty_per_day=penalty_per_day,
        cancelled=cancelled,
    )


def sample_loans():
    return [
        make_loan("L1", "C1", "LEN1", 10000.0, 8000.0, 0.01, 0.02),
        make_loan("L2", "C1", "LEN2", 5000.0, 5000.0, 0.02, 0.01),
        make_loan("L3", "C2", "LEN1", 2500.5, 1200.25, 0.01, 0.005),
        make_loan("L4", "C3", "LEN3", 750.0, 0.0, 0.015, 0.03),
    ]


class InMemoryLoanRepository:
    def __init__(self, loans=None):
        self.loans = list(loans or [])
        self.saved = []

    def find_all(self):
        return list(self.loans)

    def find_by_loan_id(self, loan_id):
        return next((loan for loan in self.loans if loan.loan_id == loan_id), None)

    def find_by_customer_id(self, customer_id):
        return [loan for loan in self.loans if loan.customer_id == customer_id]

    def find_by_lender_id(self, lender_id):
        return [loan for loan in self.loans if loan.lender_id == lender_id]

    def save(self, loan):
        if self.find_by_loan_id(loan.loan_id) is not None:
            raise StoreConstraintError(f"duplicate loan_id {loan.loan_id}")
        loan.id = len(self.loans) + 1
        self.loans.append(loan)
        self.saved.append(loan)
        return loan


class ValidateLoanTest(SimpleTestCase):
    def test_payment_before_due_date_is_valid(self):
        self.assertIsNone(validate_loan(make_loan()))

    def test_payment_on_due_date_is_valid(self):
        day = date(2024, 3, 1)
        self.assertIsNone(validate_loan(make_loan(payment_date=day, due_date=day)))

    def test_payment_after_due_date_is_rejected(self):
        loan = make_loan(payment_date=date(2024, 3, 2), due_date=date(2024, 3, 1))
        with self.assertRaises(LoanValidationError) as ctx:
            validate_loan(loan)
        self.assertEqual(ctx.exception.message, "Payment date cannot be greater than the due date")

    def test_missing_date_is_rejected(self):
        with self.assertRaises(LoanValidationError):
            validate_loan(make_loan(due_date=None))


class AggregateLoansTest(SimpleTestCase):
    keys = {
        'Lender': attrgetter('lender_id'),
        'Customer': attrgetter('customer_id'),
        'Interest': attrgetter('interest_per_day'),
    }

    def test_empty_collection_yields_zero_totals(self):
        for label, key in self.keys.items():
            aggregate = aggregate_loans([], key, label)
            self.assertEqual(aggregate.group_by, label)
            self.assertEqual(aggregate.total_remaining_amount, 0.0)
            self.assertEqual(aggregate.total_interest, 0.0)
            self.assertEqual(aggregate.total_penalty, 0.0)

    def test_single_loan_totals(self):
        for label, key in self.keys.items():
            aggregate = aggregate_loans([make_loan()], key, label)
            self.assertAlmostEqual(aggregate.total_remaining_amount, 10000.0, delta=1e-4)
            self.assertAlmostEqual(aggregate.total_interest, 100.0, delta=1e-4)
            self.assertAlmostEqual(aggregate.total_penalty, 100.0, delta=1e-4)

    def test_totals_are_sums_over_all_loans(self):
        loans = sample_loans()
        aggregate = aggregate_loans(loans, attrgetter('lender_id'), 'Lender')
        self.assertAlmostEqual(aggregate.total_remaining_amount, 14200.25, delta=1e-4)
        self.assertAlmostEqual(aggregate.total_interest, 100.0 + 100.0 + 25.005 + 11.25, delta=1e-4)
        self.assertAlmostEqual(aggregate.total_penalty, 200.0 + 50.0 + 12.5025 + 22.5, delta=1e-4)

    def test_duplicates_with_identical_keys_are_all_counted(self):
        loans = [make_loan("L1"), make_loan("L2"), make_loan("L3")]
        aggregate = aggregate_loans(loans, attrgetter('lender_id'), 'Lender')
        self.assertAlmostEqual(aggregate.total_remaining_amount, 30000.0, delta=1e-4)
        self.assertAlmostEqual(aggregate.total_interest, 300.0, delta=1e-4)
        self.assertAlmostEqual(aggregate.total_penalty, 300.0, delta=1e-4)

    def test_totals_do_not_depend_on_grouping_key(self):
        loans = sample_loans()
        results = [aggregate_loans(loans, key, label) for label, key in self.keys.items()]
        self.assertEqual([r.group_by for r in results], ['Lender', 'Customer', 'Interest'])
        for result in results[1:]:
            self.assertAlmostEqual(result.total_remaining_amount, results[0].total_remaining_amount, delta=1e-4)
            self.assertAlmostEqual(result.total_interest, results[0].total_interest, delta=1e-4)
            self.assertAlmostEqual(result.total_penalty, results[0].total_penalty, delta=1e-4)

    def test_grouped_totals_match_single_pass(self):
        loans = sample_loans()
        flat = summarize_groups('Customer', {None: loans})
        grouped = aggregate_loans(loans, attrgetter('customer_id'), 'Customer')
        self.assertAlmostEqual(grouped.total_remaining_amount, flat.total_remaining_amount, delta=1e-4)
        self.assertAlmostEqual(grouped.total_interest, flat.total_interest, delta=1e-4)
        self.assertAlmostEqual(grouped.total_penalty, flat.total_penalty, delta=1e-4)

    def test_group_loans_partitions_by_key(self):
        groups = group_loans(sample_loans(), attrgetter('lender_id'))
        self.assertEqual(list(groups), ['LEN1', 'LEN2', 'LEN3'])
        self.assertEqual([loan.loan_id for loan in groups['LEN1']], ['L1', 'L3'])


class LoanServiceTest(SimpleTestCase):
    def test_add_loan_saves_valid_loan(self):
        repository = InMemoryLoanRepository()
        loan = LoanService(repository).add_loan(make_loan())
        self.assertEqual(loan.id, 1)
        self.assertEqual(repository.saved, [loan])

    def test_invalid_loan_never_reaches_store(self):
        repository = InMemoryLoanRepository()
        loan = make_loan(payment_date=date(2024, 5, 2), due_date=date(2024, 5, 1))
        with self.assertRaises(LoanValidationError):
            LoanService(repository).add_loan(loan)
        self.assertEqual(repository.saved, [])

    def test_duplicate_loan_id_raises_constraint_error(self):
        repository = InMemoryLoanRepository([make_loan("L1")])
        with self.assertRaises(StoreConstraintError):
            LoanService(repository).add_loan(make_loan("L1"))

    def test_get_loan_by_unknown_loan_id_raises_not_found(self):
        service = LoanService(InMemoryLoanRepository(sample_loans()))
        with self.assertRaises(LoanNotFoundError) as ctx:
            service.get_loan_by_loan_id("missing")
        self.assertEqual(ctx.exception.message, "Loan with Loan ID missing not found")

    def test_unknown_customer_and_lender_return_empty_lists(self):
        service = LoanService(InMemoryLoanRepository(sample_loans()))
        self.assertEqual(service.get_loans_by_customer_id("nobody"), [])
        self.assertEqual(service.get_loans_by_lender_id("nobody"), [])

    def test_lookups_delegate_to_store(self):
        service = LoanService(InMemoryLoanRepository(sample_loans()))
        self.assertEqual(service.get_loan_by_loan_id("L3").customer_id, "C2")
        self.assertEqual([l.loan_id for l in service.get_loans_by_customer_id("C1")], ["L1", "L2"])
        self.assertEqual([l.loan_id for l in service.get_loans_by_lender_id("LEN1")], ["L1", "L3"])
        self.assertEqual(len(service.get_all_loans()), 4)

    def test_aggregation_entry_points_label_results(self):
        service = LoanService(InMemoryLoanRepository(sample_loans()))
        by_lender = service.aggregate_loans_by_lender()
        by_customer = service.aggregate_loans_by_customer_id()
        by_interest = service.aggregate_loans_by_interest()
        self.assertEqual(by_lender.group_by, 'Lender')
        self.assertEqual(by_customer.group_by, 'Customer')
        self.assertEqual(by_interest.group_by, 'Interest')
        self.assertAlmostEqual(by_lender.total_interest, by_interest.total_interest, delta=1e-4)
        self.assertAlmostEqual(by_customer.total_penalty, by_lender.total_penalty, delta=1e-4)


class InjectedServiceViewTest(SimpleTestCase):
    def setUp(self):
        self.factory = APIRequestFactory()
        self.repository = InMemoryLoanRepository(sample_loans())
        self.service = LoanService(self.repository)

    def test_list_uses_injected_store(self):
        view = AllLoansView.as_view(loan_service=self.service)
        response = view(self.factory.get('/loans/all'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['loanId'] for item in response.data], ['L1', 'L2', 'L3', 'L4'])

    def test_unknown_loan_id_is_not_found(self):
        view = ViewLoanView.as_view(loan_service=self.service)
        response = view(self.factory.get('/loans/missing'), loan_id='missing')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Resource Not Found')

    def test_rejected_loan_is_not_saved(self):
        view = AddLoanView.as_view(loan_service=self.service)
        data = {
            "loanId": "L9", "customerId": "C9", "lenderId": "LEN9", "amount": 100.0,
            "remainingAmount": 100.0, "paymentDate": "2024-06-02", "interestPerDay": 0.01,
            "dueDate": "2024-06-01", "penaltyPerDay": 0.01,
        }
        response = view(self.factory.post('/loans/add', data, format='json'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.repository.saved, [])


class LoanRepositoryTest(TestCase):
    def setUp(self):
        self.repository = LoanRepository()

    def test_save_assigns_id(self):
        loan = self.repository.save(make_loan())
        self.assertIsNotNone(loan.id)
        self.assertEqual(self.repository.find_by_id(loan.id).loan_id, "L1")

    def test_duplicate_loan_id_is_rejected(self):
        self.repository.save(make_loan("L1", remaining_amount=10.0))
        with self.assertRaises(StoreConstraintError):
            self.repository.save(make_loan("L1", remaining_amount=99.0))
        self.assertEqual(Loan.objects.count(), 1)
        self.assertEqual(self.repository.find_by_loan_id("L1").remaining_amount, 10.0)

    def test_find_by_fields(self):
        for loan in sample_loans():
            self.repository.save(loan)
        self.assertEqual(len(self.repository.find_all()), 4)
        self.assertEqual([l.loan_id for l in self.repository.find_by_customer_id("C1")], ["L1", "L2"])
        self.assertEqual([l.loan_id for l in self.repository.find_by_lender_id("LEN1")], ["L1", "L3"])
        self.assertIsNone(self.repository.find_by_loan_id("missing"))
        self.assertIsNone(self.repository.find_by_id(9999))


class AddLoanAPITest(APITestCase):
    def loan_payload(self, **overrides):
        data = {
            "loanId": "L-100",
            "customerId": "C-1",
            "lenderId": "LEN-1",
            "amount": 10000.0,
            "remainingAmount": 10000.0,
            "paymentDate": "2024-01-10",
            "interestPerDay": 0.01,
            "dueDate": "2024-02-10",
            "penaltyPerDay": 0.01,
            "cancelled": False,
        }
        data.update(overrides)
        return data

    def test_add_loan(self):
        url = reverse('add-loan')
        response = self.client.post(url, self.loan_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['loanId'], 'L-100')
        self.assertEqual(response.data['customerId'], 'C-1')
        self.assertEqual(response.data['lenderId'], 'LEN-1')
        self.assertEqual(response.data['amount'], 10000.0)
        self.assertEqual(response.data['paymentDate'], '2024-01-10')
        self.assertEqual(response.data['dueDate'], '2024-02-10')
        self.assertFalse(response.data['cancelled'])
        self.assertTrue(Loan.objects.filter(loan_id='L-100').exists())

    def test_payment_after_due_date_is_rejected(self):
        url = reverse('add-loan')
        data = self.loan_payload(paymentDate="2024-03-01", dueDate="2024-02-01")
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation Error')
        self.assertEqual(response.data['details'], ['Payment date cannot be greater than the due date'])
        self.assertEqual(Loan.objects.count(), 0)

    def test_duplicate_loan_id_is_a_conflict(self):
        url = reverse('add-loan')
        self.client.post(url, self.loan_payload(), format='json')
        response = self.client.post(url, self.loan_payload(remainingAmount=1.0), format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Data Integrity Violation')
        self.assertIn('loan_id', response.data['details'][0])
        self.assertEqual(Loan.objects.get(loan_id='L-100').remaining_amount, 10000.0)

    def test_missing_fields_are_reported(self):
        url = reverse('add-loan')
        data = self.loan_payload()
        del data['loanId']
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation Error')
        self.assertIn('loanId: This field is required.', response.data['details'])

    def test_reserved_loan_ids_are_rejected(self):
        url = reverse('add-loan')
        for loan_id in ('all', 'add'):
            response = self.client.post(url, self.loan_payload(loanId=loan_id), format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertIn(f"loanId: '{loan_id}' is reserved and cannot be used as a loan ID.", response.data['details'])
        self.assertEqual(Loan.objects.count(), 0)

    def test_malformed_body_is_rejected(self):
        url = reverse('add-loan')
        response = self.client.post(url, data='{"loanId": ', content_type='application/json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Validation Error')


class ViewLoansAPITest(APITestCase):
    def setUp(self):
        today = date.today()
        self.loan1 = Loan.objects.create(
            loan_id="L1", customer_id="C1", lender_id="LEN1", amount=10000.0,
            remaining_amount=10000.0, payment_date=today, interest_per_day=0.01,
            due_date=today + timedelta(days=30), penalty_per_day=0.01,
        )
        self.loan2 = Loan.objects.create(
            loan_id="L2", customer_id="C1", lender_id="LEN2", amount=5000.0,
            remaining_amount=2500.0, payment_date=today, interest_per_day=0.02,
            due_date=today + timedelta(days=60), penalty_per_day=0.03,
        )

    def test_view_all_loans(self):
        response = self.client.get(reverse('all-loans'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['loanId'] for item in response.data], ['L1', 'L2'])

    def test_view_loan(self):
        response = self.client.get(reverse('view-loan', args=['L2']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['loanId'], 'L2')
        self.assertEqual(response.data['remainingAmount'], 2500.0)
        self.assertEqual(response.data['penaltyPerDay'], 0.03)

    def test_view_unknown_loan_is_not_found(self):
        response = self.client.get(reverse('view-loan', args=['missing']))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Resource Not Found')
        self.assertEqual(response.data['details'], ['Loan with Loan ID missing not found'])

    def test_view_customer_loans(self):
        response = self.client.get(reverse('customer-loans', args=['C1']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_view_lender_loans(self):
        response = self.client.get(reverse('lender-loans', args=['LEN2']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['loanId'] for item in response.data], ['L2'])

    def test_unknown_customer_and_lender_are_empty(self):
        for name in ('customer-loans', 'lender-loans'):
            response = self.client.get(reverse(name, args=['nobody']))
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data, [])


class AggregateLoansAPITest(APITestCase):
    def test_aggregates_on_empty_store(self):
        for name, label in (('aggregate-lender', 'Lender'), ('aggregate-customer', 'Customer'),
                            ('aggregate-interest', 'Interest')):
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data, {
                'groupBy': label,
                'totalRemainingAmount': 0.0,
                'totalInterest': 0.0,
                'totalPenalty': 0.0,
            })

    def test_aggregates_over_stored_loans(self):
        for loan in sample_loans():
            loan.save()
        for name, label in (('aggregate-lender', 'Lender'), ('aggregate-customer', 'Customer'),
                            ('aggregate-interest', 'Interest')):
            response = self.client.get(reverse(name))
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual(response.data['groupBy'], label)
            self.assertAlmostEqual(response.data['totalRemainingAmount'], 14200.25, delta=1e-4)
            self.assertAlmostEqual(response.data['totalInterest'], 236.255, delta=1e-4)
            self.assertAlmostEqual(response.data['totalPenalty'], 285.0025, delta=1e-4)


class IngestLoanDataTest(TestCase):
    def spreadsheet(self):
        return pd.DataFrame([
            {"Loan ID": "X1", "Customer ID": "C1", "Lender ID": "LEN1", "Amount": 1000.0,
             "Remaining Amount": 500.0, "Payment Date": "2024-01-01", "Due Date": "2024-02-01",
             "Interest Per Day": 0.01, "Penalty Per Day": 0.02, "Cancelled": False},
            {"Loan ID": "X2", "Customer ID": "C2", "Lender ID": "LEN1", "Amount": 2000.0,
             "Remaining Amount": 2000.0, "Payment Date": "2024-03-01", "Due Date": "2024-02-01",
             "Interest Per Day": 0.01, "Penalty Per Day": 0.02, "Cancelled": False},
            {"Loan ID": "X1", "Customer ID": "C3", "Lender ID": "LEN2", "Amount": 3000.0,
             "Remaining Amount": 3000.0, "Payment Date": "2024-01-01", "Due Date": "2024-02-01",
             "Interest Per Day": 0.01, "Penalty Per Day": 0.02, "Cancelled": True},
        ])

    def test_ingest_skips_invalid_and_duplicate_rows(self):
        with mock.patch('api.tasks.pd.read_excel', return_value=self.spreadsheet()) as read_excel:
            result = ingest_loan_data('loan_data.xlsx')
        read_excel.assert_called_once_with('loan_data.xlsx')
        self.assertEqual(result, {'created': 1, 'skipped': 2})
        loan = Loan.objects.get(loan_id='X1')
        self.assertEqual(loan.customer_id, 'C1')
        self.assertEqual(loan.payment_date, date(2024, 1, 1))
        self.assertEqual(loan.due_date, date(2024, 2, 1))
        self.assertFalse(loan.cancelled)

    def test_management_command(self):
        out = StringIO()
        with mock.patch('api.tasks.pd.read_excel', return_value=self.spreadsheet()):
            call_command('ingest_loans', 'loans.xlsx', stdout=out)
        self.assertIn('1 created, 2 skipped', out.getvalue())
        self.assertEqual(Loan.objects.count(), 1)

    def test_malformed_rows_are_skipped_and_later_rows_ingested(self):
        base = {"Customer ID": "C1", "Lender ID": "LEN1", "Amount": 1000.0, "Remaining Amount": 500.0,
                "Payment Date": "2024-01-01", "Due Date": "2024-02-01", "Interest Per Day": 0.01,
                "Penalty Per Day": 0.02, "Cancelled": "no"}
        spreadsheet = pd.DataFrame([
            dict(base, **{"Loan ID": "Y1"}),
            dict(base, **{"Loan ID": "Y2", "Payment Date": None}),
            dict(base, **{"Loan ID": "Y3", "Amount": "lots"}),
            dict(base, **{"Loan ID": "Y4", "Cancelled": "True"}),
        ])
        with mock.patch('api.tasks.pd.read_excel', return_value=spreadsheet):
            result = ingest_loan_data('loan_data.xlsx')
        self.assertEqual(result, {'created': 2, 'skipped': 2})
        self.assertEqual(sorted(Loan.objects.values_list('loan_id', flat=True)), ['Y1', 'Y4'])
        self.assertFalse(Loan.objects.get(loan_id='Y1').cancelled)
        self.assertTrue(Loan.objects.get(loan_id='Y4').cancelled)

    def test_missing_column_skips_every_row(self):
        spreadsheet = self.spreadsheet().drop(columns=['Due Date'])
        with mock.patch('api.tasks.pd.read_excel', return_value=spreadsheet):
            result = ingest_loan_data('loan_data.xlsx')
        self.assertEqual(result, {'created': 0, 'skipped': 3})
        self.assertEqual(Loan.objects.count(), 0)
