from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'name', 'is_staff', 'is_active')
    list_filter = ('is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'email', 'name')
    fieldsets = UserAdmin.fieldsets + (
        ('Board Profile', {'fields': ('name',)}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Board Profile', {'fields': ('email', 'name')}),
    )
