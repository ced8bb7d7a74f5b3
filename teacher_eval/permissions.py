from rest_framework.permissions import BasePermission, SAFE_METHODS

from accounts.models import Role
from teacher_eval.models import School, SchoolMembership


def school_ids_for(user, roles=None):
    """
    Schools the user holds a grant for. ADMIN returns None (= no restriction).
    """
    if user.role == Role.ADMIN:
        return None
    grants = SchoolMembership.objects.filter(user=user)
    if roles:
        grants = grants.filter(role__in=roles)
    return list(grants.values_list("school_id", flat=True))


def can_manage_school(user, school_id) -> bool:
    """PRINCIPAL / EVALUATOR grant on the school, or ADMIN."""
    if user.role == Role.ADMIN:
        return True
    if school_id is None:
        return False
    return SchoolMembership.objects.filter(
        user=user, school_id=school_id, role__in=(Role.PRINCIPAL, Role.EVALUATOR)
    ).exists()


def owns_teacher(user, teacher) -> bool:
    return teacher is not None and teacher.user_id is not None and teacher.user_id == user.user_id


class IsSystemAdmin(BasePermission):
    def has_permission(self, request, view):
        return request.user.role == Role.ADMIN


class IsPrincipal(BasePermission):
    def has_permission(self, request, view):
        return request.user.role == Role.PRINCIPAL


class IsSchoolStaff(BasePermission):
    """
    Grants permission when the user is ADMIN, PRINCIPAL **or** EVALUATOR.
    """
    def has_permission(self, request, view):
        return request.user.role in (Role.ADMIN, Role.PRINCIPAL, Role.EVALUATOR)


class ReadOnlyOrAdmin(BasePermission):
    """
    - SAFE methods (GET / HEAD / OPTIONS) → every authenticated user.
    - Mutating methods (POST / PUT / PATCH / DELETE) → Admin only.
    """
    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return request.user.role == Role.ADMIN


class IsSelfOrAdmin(BasePermission):
    """
    Users can view / edit their own account.
    Admin can touch everyone.
    """
    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        if request.user.role == Role.ADMIN:
            return True
        return obj.user_id == request.user.user_id


class CanTouchEvaluation(BasePermission):
    '''
    Admin has all access
    Principal and evaluator have access to evaluations of their schools
    Teachers can read their own evaluations (objection / evidence are separate actions)
    '''
    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        user = request.user
        if user.role == Role.ADMIN:
            return True
        school_id = obj.school_id or obj.teacher.school_id
        if user.role in (Role.PRINCIPAL, Role.EVALUATOR):
            return can_manage_school(user, school_id)
        if user.role == Role.TEACHER:
            return request.method in SAFE_METHODS and owns_teacher(user, obj.teacher)
        return False


class CanTouchSchool(BasePermission):
    def has_permission(self, request, view):
        return request.user and request.user.is_authenticated

    def has_object_permission(self, request, view, obj):
        school_id = obj.school_id if not isinstance(obj, School) else obj.pk
        if request.method in SAFE_METHODS:
            ids = school_ids_for(request.user)
            return ids is None or school_id in ids
        return can_manage_school(request.user, school_id)
