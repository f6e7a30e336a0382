from django.contrib.auth import authenticate
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import AnonRateThrottle

from .permissions import user_role


def _error(detail: str, status_code: int):
    """Consistent error payload shape across API: {'detail': ...}."""
    return JsonResponse({'detail': detail}, status=status_code)


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


@csrf_exempt
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """
    Login endpoint that returns a token and user role
    """
    data = request.data if hasattr(request.data, 'get') else {}
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return _error('Username and password required', 400)

    user = authenticate(username=username, password=password)
    if not user:
        return _error('Invalid credentials', 401)

    token, created = Token.objects.get_or_create(user=user)

    return JsonResponse({
        'token': token.key,
        'role': user_role(user),
        'username': user.username
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    user = request.user
    return JsonResponse({
        'username': user.username,
        'full_name': getattr(user, 'full_name', ''),
        'role': user_role(user),
    })
