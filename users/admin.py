from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from users.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Dealership staff accounts"""

    list_display = ('email', 'full_name', 'role_badge', 'phone_number', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff', 'date_joined')
    search_fields = ('email', 'first_name', 'last_name', 'phone_number')
    ordering = ('-date_joined',)
    list_per_page = 25

    fieldsets = (
        ('User Identity', {
            'fields': (('email', 'role'), ('first_name', 'last_name'), 'phone_number'),
        }),
        ('Account Status', {
            'fields': (('is_active', 'is_staff'), 'is_superuser'),
        }),
        ('Permissions & Groups', {
            'fields': ('groups', 'user_permissions'),
            'classes': ('collapse',),
        }),
        ('Important Dates', {
            'fields': (('date_joined', 'last_login'),),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        ('Create New User', {
            'classes': ('wide',),
            'fields': (
                ('email', 'role'),
                ('first_name', 'last_name'),
                'phone_number',
                ('password1', 'password2')
            ),
        }),
    )

    readonly_fields = ('date_joined', 'last_login')

    def role_badge(self, obj):
        role_colors = {
            User.ADMIN: '#e53e3e',
            User.PURCHASE: '#3182ce',
            User.SALES: '#38a169',
        }
        return format_html(
            '<span style="background-color: {}; color: white; padding: 4px 12px; '
            'border-radius: 12px; font-size: 11px; font-weight: bold; text-transform: uppercase;">'
            '{}</span>',
            role_colors.get(obj.role, '#718096'), obj.role
        )
    role_badge.short_description = 'Role'

    actions = ['activate_users', 'deactivate_users']

    def activate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f'{updated} users were successfully activated.')
    activate_users.short_description = "Activate selected users"

    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f'{updated} users were successfully deactivated.')
    deactivate_users.short_description = "Deactivate selected users"
