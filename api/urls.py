from django.urls import path
from .views import (
    AddLoanView,
    AggregateLoansView,
    AllLoansView,
    CustomerLoansView,
    LenderLoansView,
    ViewLoanView,
)

urlpatterns = [
    path('all', AllLoansView.as_view(), name='all-loans'),
    path('add', AddLoanView.as_view(), name='add-loan'),
    path('customer/<str:customer_id>', CustomerLoansView.as_view(), name='customer-loans'),
    path('lender/<str:lender_id>', LenderLoansView.as_view(), name='lender-loans'),
    path('aggregate/lender', AggregateLoansView.as_view(group_by='lender'), name='aggregate-lender'),
    path('aggregate/customer', AggregateLoansView.as_view(group_by='customer'), name='aggregate-customer'),
    path('aggregate/interest', AggregateLoansView.as_view(group_by='interest'), name='aggregate-interest'),
    path('<str:loan_id>', ViewLoanView.as_view(), name='view-loan'),
]
