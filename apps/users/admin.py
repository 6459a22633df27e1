from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class AccountAdmin(UserAdmin):
    model = CustomUser
    list_display = ('email', 'display_name', 'role', 'has_shop', 'subscription_status', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff', 'subscription__status')
    list_select_related = ('shop', 'subscription')
    ordering = ('-date_joined',)
    search_fields = ('email', 'display_name', 'shop__slug')

    fieldsets = (
        ('Login', {'fields': ('email', 'password')}),
        ('Profile', {'fields': ('display_name', 'role')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Dates', {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'display_name', 'password1', 'password2', 'role')}
        ),
    )

    @admin.display(boolean=True, description='Shop')
    def has_shop(self, obj):
        return obj.has_shop

    @admin.display(description='Subscription')
    def subscription_status(self, obj):
        subscription = getattr(obj, 'subscription', None)
        if subscription is None:
            return '-'
        return 'Active' if subscription.is_current() else subscription.get_status_display()
