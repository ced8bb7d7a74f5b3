from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()

# Arabic-Indic digits typed on Arabic keyboards
_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩", "0123456789")


def normalize_national_id(value) -> str:
    return str(value or "").strip().translate(_DIGITS)


class FlexibleAuthBackend(ModelBackend):
    """
    Login identifiers, in order of precedence:
    - username + email (both must belong to the same account)
    - username
    - email (case-insensitive)
    - national id (teachers and principals usually sign in with it)
    """
    def authenticate(self, request, username=None, password=None, **kwargs):
        if not password:
            return None
        user = self._lookup(username, kwargs.get("email"), kwargs.get("national_id"))
        if user is not None and user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None

    def _lookup(self, username, email, national_id):
        lookup = {}
        if username:
            lookup["username"] = username
        if email:
            lookup["email__iexact"] = email
        if not lookup and national_id:
            lookup["national_id"] = normalize_national_id(national_id)
        if not lookup:
            return None
        # several accounts may share a national id; refuse rather than guess
        matches = list(User.objects.filter(**lookup)[:2])
        return matches[0] if len(matches) == 1 else None

    def get_user(self, user_id):
        return User.objects.filter(pk=user_id).first()
