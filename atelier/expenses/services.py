from decimal import Decimal

from django.db.models import Sum, Count

from .models import Expense, EXPENSE_PAYMENT_METHOD_CHOICES


def expenses_in_period(start_date, end_date, queryset=None):
    queryset = Expense.objects.all() if queryset is None else queryset
    return queryset.filter(date__gte=start_date, date__lte=end_date)


def build_expense_report(start_date, end_date, queryset=None):
    """Totals of the period grouped by category, payment method and staff member"""
    expenses = expenses_in_period(start_date, end_date, queryset)
    totals = expenses.aggregate(total=Sum('amount'), count=Count('id'))
    total = totals['total'] or Decimal('0.00')
    count = totals['count']
    method_labels = dict(EXPENSE_PAYMENT_METHOD_CHOICES)

    by_category = [
        {'category_id': row['category_id'], 'name': row['category__name'], 'color': row['category__color'],
         'total': row['total'], 'count': row['count']}
        for row in expenses.values('category_id', 'category__name', 'category__color').annotate(
            total=Sum('amount'), count=Count('id')
        ).order_by('-total')
    ]
    by_payment_method = [
        {'payment_method': row['payment_method'], 'label': method_labels.get(row['payment_method'], row['payment_method']),
         'total': row['total'], 'count': row['count']}
        for row in expenses.values('payment_method').annotate(total=Sum('amount'), count=Count('id')).order_by('-total')
    ]
    by_staff = [
        {'staff_id': row['staff_id'], 'username': row['staff__username'],
         'name': f"{row['staff__first_name']} {row['staff__last_name']}".strip() or row['staff__username'],
         'total': row['total'], 'count': row['count']}
        for row in expenses.filter(staff__isnull=False).values(
            'staff_id', 'staff__username', 'staff__first_name', 'staff__last_name'
        ).annotate(total=Sum('amount'), count=Count('id')).order_by('-total')
    ]
    return {
        'period': {'start': start_date, 'end': end_date},
        'total': total,
        'count': count,
        'average': (total / count).quantize(Decimal('0.01')) if count else Decimal('0.00'),
        'by_category': by_category,
        'by_payment_method': by_payment_method,
        'by_staff': by_staff,
    }
