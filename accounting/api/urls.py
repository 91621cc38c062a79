# accounting/api/urls.py

from django.urls import path

from accounting.api.views.expenses import ExpenseListCreateView

app_name = "accounting"

urlpatterns = [
    path("expenses/", ExpenseListCreateView.as_view(), name="expenses"),
]
