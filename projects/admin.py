from django.contrib import admin
from .models import Project, ProjectMember, Task


class ProjectMemberInline(admin.TabularInline):
    model = ProjectMember
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'owner', 'created_at', 'updated_at')
    list_filter = ('status',)
    search_fields = ('title', 'description', 'owner__username', 'owner__email')
    date_hierarchy = 'created_at'
    inlines = [ProjectMemberInline]


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ('title', 'project', 'status', 'priority', 'order', 'assignee', 'updated_at')
    list_filter = ('status', 'priority', 'project')
    search_fields = ('title', 'description', 'project__title', 'assignee__username')
    ordering = ('project', 'status', 'order')
