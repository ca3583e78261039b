from rest_framework import serializers
from .models import ExpenseCategory, Expense


class ExpenseCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ExpenseCategory
        fields = ['id', 'name', 'description', 'color', 'is_active', 'created_at']
        read_only_fields = ['created_at']


class ExpenseSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_color = serializers.CharField(source='category.color', read_only=True)
    staff_name = serializers.CharField(source='staff.display_name', read_only=True, default=None)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True, default=None)

    class Meta:
        model = Expense
        fields = ['id', 'store', 'category', 'category_name', 'category_color', 'description', 'amount',
                  'payment_method', 'date', 'reference', 'notes', 'staff', 'staff_name',
                  'created_by', 'created_by_name', 'created_at', 'updated_at']
        read_only_fields = ['store', 'created_by', 'created_at', 'updated_at']

    def validate_category(self, value):
        if not value.is_active and (self.instance is None or self.instance.category_id != value.id):
            raise serializers.ValidationError("This category is inactive.")
        return value

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError("Description is required.")
        return value.strip()

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return value
