import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q, Sum, Count
from django.shortcuts import get_object_or_404
from atelier.core.cache_utils import invalidate_dashboard_cache
from atelier.core.permissions import HasRolePermission
from atelier.core.utils import create_audit_log, paginate, parse_date, get_period_range
from atelier.locations.utils import get_request_store, filter_by_store
from .models import ExpenseCategory, Expense
from .serializers import ExpenseCategorySerializer, ExpenseSerializer
from .services import build_expense_report

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('expenses')])
def expense_category_list_create(request):
    if request.method == 'GET':
        categories = ExpenseCategory.objects.annotate(expenses_count=Count('expenses'))
        if request.query_params.get('active') == 'true':
            categories = categories.filter(is_active=True)
        data = ExpenseCategorySerializer(categories, many=True).data
        for row, category in zip(data, categories):
            row['expenses_count'] = category.expenses_count
        return Response(data)

    serializer = ExpenseCategorySerializer(data=request.data)
    if serializer.is_valid():
        category = serializer.save()
        create_audit_log(request=request, action='create', model_name='ExpenseCategory',
                         object_id=category.id, object_name=category.name)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('expenses')])
def expense_category_detail(request, pk):
    category = get_object_or_404(ExpenseCategory, pk=pk)

    if request.method == 'GET':
        return Response(ExpenseCategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseCategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if category.expenses.exists():
            return Response({'error': 'This category is used by existing expenses; deactivate it instead'},
                            status=status.HTTP_400_BAD_REQUEST)
        category.delete()
        create_audit_log(request=request, action='delete', model_name='ExpenseCategory', object_id=pk,
                         object_name=category.name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, HasRolePermission('expenses')])
def expense_list_create(request):
    """Expenses filtered by period, category, payment method or staff, with totals"""
    if request.method == 'GET':
        queryset = filter_by_store(Expense.objects.select_related('category', 'staff', 'created_by'),
                                   get_request_store(request))
        params = request.query_params
        if params.get('period'):
            start_date, end_date = get_period_range(params['period'], params.get('date_from'), params.get('date_to'))
            queryset = queryset.filter(date__gte=start_date, date__lte=end_date)
        else:
            date_from = parse_date(params.get('date_from'))
            date_to = parse_date(params.get('date_to'))
            if date_from:
                queryset = queryset.filter(date__gte=date_from)
            if date_to:
                queryset = queryset.filter(date__lte=date_to)
        if params.get('category'):
            queryset = queryset.filter(category_id=params['category'])
        if params.get('payment_method'):
            queryset = queryset.filter(payment_method=params['payment_method'])
        if params.get('staff'):
            queryset = queryset.filter(staff_id=params['staff'])
        search = params.get('search')
        if search:
            queryset = queryset.filter(Q(description__icontains=search) | Q(reference__icontains=search))
        totals = queryset.aggregate(total_amount=Sum('amount'), count=Count('id'))
        return Response(paginate(request, queryset.order_by('-date', '-created_at'), ExpenseSerializer, extra={
            'totals': {'total_amount': totals['total_amount'] or 0, 'count': totals['count']},
        }))

    serializer = ExpenseSerializer(data=request.data)
    if serializer.is_valid():
        expense = serializer.save(store=get_request_store(request), created_by=request.user)
        create_audit_log(request=request, action='create', model_name='Expense', object_id=expense.id,
                         object_name=expense.description, changes={'amount': str(expense.amount)})
        invalidate_dashboard_cache()
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, HasRolePermission('expenses')])
def expense_detail(request, pk):
    expense = get_object_or_404(Expense.objects.select_related('category', 'staff', 'created_by'), pk=pk)

    if request.method == 'GET':
        return Response(ExpenseSerializer(expense).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ExpenseSerializer(expense, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Expense', object_id=expense.id,
                             object_name=expense.description, changes=request.data)
            invalidate_dashboard_cache()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        expense.delete()
        create_audit_log(request=request, action='delete', model_name='Expense', object_id=pk,
                         object_name=expense.description, changes={'amount': str(expense.amount)})
        invalidate_dashboard_cache()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRolePermission('expenses')])
def expense_report(request):
    """?period=today|yesterday|week|month|year|custom, last 30 days by default"""
    params = request.query_params
    start_date, end_date = get_period_range(params.get('period'), params.get('date_from'), params.get('date_to'))
    queryset = filter_by_store(Expense.objects.all(), get_request_store(request))
    return Response(build_expense_report(start_date, end_date, queryset))
