from rest_framework import serializers
from .models import Loan

# Loan IDs that would be shadowed by the fixed /loans/<name> routes
RESERVED_LOAN_IDS = ('all', 'add')

class LoanSerializer(serializers.ModelSerializer):
    loanId = serializers.CharField(source='loan_id', max_length=255)
    customerId = serializers.CharField(source='customer_id', max_length=255)
    lenderId = serializers.CharField(source='lender_id', max_length=255)
    amount = serializers.FloatField(min_value=0)
    remainingAmount = serializers.FloatField(source='remaining_amount', min_value=0)
    paymentDate = serializers.DateField(source='payment_date')
    interestPerDay = serializers.FloatField(source='interest_per_day', min_value=0)
    dueDate = serializers.DateField(source='due_date')
    penaltyPerDay = serializers.FloatField(source='penalty_per_day', min_value=0)
    cancelled = serializers.BooleanField(default=False)

    class Meta:
        model = Loan
        fields = [
            'loanId', 'customerId', 'lenderId', 'amount', 'remainingAmount',
            'paymentDate', 'interestPerDay', 'dueDate', 'penaltyPerDay', 'cancelled',
        ]

    def validate_loanId(self, value):
        if value in RESERVED_LOAN_IDS:
            raise serializers.ValidationError(f"'{value}' is reserved and cannot be used as a loan ID.")
        return value

    def to_loan(self):
        """Build an unsaved Loan from the validated request body."""
        return Loan(**self.validated_data)

class LoanAggregateSerializer(serializers.Serializer):
    groupBy = serializers.CharField(source='group_by')
    totalRemainingAmount = serializers.FloatField(source='total_remaining_amount')
    totalInterest = serializers.FloatField(source='total_interest')
    totalPenalty = serializers.FloatField(source='total_penalty')
