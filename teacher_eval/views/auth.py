from rest_framework_simplejwt.views import TokenObtainPairView

from teacher_eval.serializers.auth_serializers import EmailLoginSerializer


class EmailLoginView(TokenObtainPairView):
    serializer_class = EmailLoginSerializer
