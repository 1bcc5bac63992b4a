from django.db import models

# Create your models here.

class Loan(models.Model):
    loan_id = models.CharField(max_length=255, unique=True)
    customer_id = models.CharField(max_length=255, db_index=True)
    lender_id = models.CharField(max_length=255, db_index=True)
    amount = models.FloatField()
    remaining_amount = models.FloatField()
    payment_date = models.DateField()
    interest_per_day = models.FloatField()
    due_date = models.DateField()
    penalty_per_day = models.FloatField()
    cancelled = models.BooleanField(default=False)

    def __str__(self):
        return f"Loan {self.loan_id} ({self.lender_id} -> {self.customer_id})"
