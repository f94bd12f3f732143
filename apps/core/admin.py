from typing import Any

from django.contrib import admin, messages
from django.contrib.auth.admin import GroupAdmin as BaseGroupAdmin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import Group
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _
from django.utils.translation import ngettext
from simple_history.admin import SimpleHistoryAdmin
from unfold.admin import ModelAdmin
from unfold.forms import (
    AdminPasswordChangeForm,
    UserChangeForm,
    UserCreationForm,
)

from .deleters import deleter_for
from .models import User
from .services import bulk_restore, bulk_soft_delete

admin.site.unregister(Group)


class BaseAuditAdmin(SimpleHistoryAdmin, ModelAdmin):
    """Base admin with soft-delete, restore and audit functionalities."""

    readonly_fields = [
        "created_at",
        "updated_at",
        "deleted_at",
        "created_by",
        "updated_by",
        "deleted_by",
        "deleted_by_system",
        "deletion_reason",
    ]

    actions = ["soft_delete_selected", "restore_selected"]

    list_display = ("__str__", "created_at", "updated_at")

    def get_queryset(self, request: HttpRequest) -> QuerySet:
        """Show soft-deleted rows too so they can be restored."""
        return self.model.objects.all_with_deleted()

    @admin.action(description=_("Mark as deleted (soft delete)"))
    def soft_delete_selected(
        self, request: HttpRequest, queryset: QuerySet
    ) -> None:
        """Action to soft delete selected records."""
        rows_updated = bulk_soft_delete(
            queryset=queryset, deleter=deleter_for(request.user)
        )
        message = ngettext(
            "%(count)d record was marked as deleted.",
            "%(count)d records were marked as deleted.",
            rows_updated,
        ) % {"count": rows_updated}
        self.message_user(request, message, messages.SUCCESS)

    @admin.action(description=_("Restore selected"))
    def restore_selected(
        self, request: HttpRequest, queryset: QuerySet
    ) -> None:
        """Action to restore deleted records."""
        rows_updated = bulk_restore(queryset=queryset)
        message = ngettext(
            "%(count)d record was restored.",
            "%(count)d records were restored.",
            rows_updated,
        ) % {"count": rows_updated}
        self.message_user(request, message, messages.SUCCESS)

    def get_actions(self, request: HttpRequest) -> dict:
        """Remove Django's default delete action."""
        actions = super().get_actions(request)
        if "delete_selected" in actions:
            del actions["delete_selected"]
        return actions

    def save_model(
        self, request: Any, obj: Any, form: Any, change: bool
    ) -> None:
        """Automatically set user on creation/update."""
        if not change:
            obj.created_by = request.user
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)

    def get_list_display(self, request: HttpRequest) -> tuple:
        """Hide deletion columns for non-superusers."""
        list_display = super().get_list_display(request)
        if not request.user.is_superuser:
            return tuple(
                f for f in list_display if not f.startswith("deleted_")
            )
        return list_display


@admin.register(User)
class UserAdmin(BaseUserAdmin, ModelAdmin):
    """Admin configuration for the custom User model."""

    form = UserChangeForm
    add_form = UserCreationForm
    change_password_form = AdminPasswordChangeForm

    list_display = (
        "username",
        "email",
        "first_name",
        "last_name",
        "is_staff",
        "is_active",
        "last_login",
    )
    list_filter = ("is_staff", "is_active", "is_superuser", "last_login")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        (
            _("Personal info"),
            {"fields": ("first_name", "last_name", "email", "phone")},
        ),
        (
            _("Permissions"),
            {
                "fields": (
                    "is_active",
                    "is_staff",
                    "is_superuser",
                    "groups",
                    "user_permissions",
                ),
            },
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets

    def get_readonly_fields(
        self, request: HttpRequest, obj: User | None = None
    ) -> tuple:
        """Make certain fields read-only for non-superusers."""
        readonly = ["date_joined", "last_login"]
        if not request.user.is_superuser:
            readonly.extend(["is_superuser", "user_permissions"])
        return tuple(readonly)


@admin.register(Group)
class GroupAdmin(BaseGroupAdmin, ModelAdmin):
    """Admin configuration for the Group model, using the Unfold theme."""

    pass
