import logging
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from .exceptions import LoanNotFoundError
from .repository import LoanRepository
from .serializers import LoanAggregateSerializer, LoanSerializer
from .services import LoanService

logger = logging.getLogger(__name__)


class LoanAPIView(APIView):
    """Base view holding the loan service. Pass loan_service to as_view() to use another store."""
    loan_service = None

    def get_loan_service(self):
        if self.loan_service is None:
            return LoanService(LoanRepository())
        return self.loan_service


class AllLoansView(LoanAPIView):
    """API endpoint to list all loans."""
    def get(self, request):
        logger.info("Received request to retrieve all loans.")
        loans = self.get_loan_service().get_all_loans()
        logger.info(f"Retrieved {len(loans)} loans.")
        return Response(LoanSerializer(loans, many=True).data, status=status.HTTP_200_OK)


class AddLoanView(LoanAPIView):
    """API endpoint to create a new loan."""
    def post(self, request):
        logger.info(f"Received request to create a new loan: {request.data}")
        serializer = LoanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        loan = self.get_loan_service().add_loan(serializer.to_loan())
        logger.info(f"Created loan with ID: {loan.id}")
        return Response(LoanSerializer(loan).data, status=status.HTTP_201_CREATED)


class ViewLoanView(LoanAPIView):
    """API endpoint to view a loan by its loan ID."""
    def get(self, request, loan_id):
        logger.info(f"Received request to retrieve loan details by ID: {loan_id}")
        try:
            loan = self.get_loan_service().get_loan_by_loan_id(loan_id)
        except LoanNotFoundError:
            logger.warning(f"Loan with ID {loan_id} not found.")
            raise
        return Response(LoanSerializer(loan).data, status=status.HTTP_200_OK)


class CustomerLoansView(LoanAPIView):
    """API endpoint to view all loans of a customer."""
    def get(self, request, customer_id):
        logger.info(f"Received request to retrieve loans for customer with ID: {customer_id}")
        loans = self.get_loan_service().get_loans_by_customer_id(customer_id)
        logger.info(f"Retrieved {len(loans)} loans for customer with ID: {customer_id}")
        return Response(LoanSerializer(loans, many=True).data, status=status.HTTP_200_OK)


class LenderLoansView(LoanAPIView):
    """API endpoint to view all loans of a lender."""
    def get(self, request, lender_id):
        logger.info(f"Received request to retrieve loans for lender with ID: {lender_id}")
        loans = self.get_loan_service().get_loans_by_lender_id(lender_id)
        logger.info(f"Retrieved {len(loans)} loans for lender with ID: {lender_id}")
        return Response(LoanSerializer(loans, many=True).data, status=status.HTTP_200_OK)


class AggregateLoansView(LoanAPIView):
    """API endpoint to total remaining amount, interest and penalty over all loans."""
    group_by = None

    def get(self, request):
        logger.info(f"Received request to aggregate loans by {self.group_by}.")
        service = self.get_loan_service()
        aggregators = {
            'lender': service.aggregate_loans_by_lender,
            'customer': service.aggregate_loans_by_customer_id,
            'interest': service.aggregate_loans_by_interest,
        }
        aggregate = aggregators[self.group_by]()
        return Response(LoanAggregateSerializer(aggregate).data, status=status.HTTP_200_OK)
