from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    UserSerializer,
    SendOtpSerializer,
    ResendOtpSerializer,
    VerifyOtpSerializer,
    UserLoginSerializer,
)
from .services import (
    EmailInUseError,
    NoPendingRegistrationError,
    ExpiredOtpError,
    InvalidOtpError,
    InvalidCredentialsError,
    InactiveAccountError,
    initiate_registration,
    resend_registration_otp,
    complete_registration,
    authenticate_user,
    issue_tokens,
)


# Response serializers for API documentation
class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    message = serializers.CharField()
    user = UserSerializer()
    tokens = TokensResponseSerializer()


class MessageResponseSerializer(serializers.Serializer):
    message = serializers.CharField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


@extend_schema(
    request=SendOtpSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Start registration: park the form data and email a 6-digit code.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def send_otp(request):
    """Start OTP-gated registration."""
    serializer = SendOtpSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        initiate_registration(**serializer.validated_data)
    except EmailInUseError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'OTP sent to your email. Please verify to complete registration.'
    })


@extend_schema(
    request=ResendOtpSerializer,
    responses={
        200: MessageResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Send a new code for a pending registration. The previous code stops working.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def resend_otp(request):
    serializer = ResendOtpSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        resend_registration_otp(email=serializer.validated_data['email'])
    except NoPendingRegistrationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({'message': 'A new OTP has been sent to your email.'})


@extend_schema(
    request=VerifyOtpSerializer,
    responses={
        201: AuthResponseSerializer,
        400: ErrorResponseSerializer,
    },
    description="Verify the emailed code, create the account and receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def verify_otp(request):
    """Complete registration."""
    serializer = VerifyOtpSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = complete_registration(
            email=serializer.validated_data['email'],
            code=serializer.validated_data['otp'],
        )
    except (NoPendingRegistrationError, ExpiredOtpError, InvalidOtpError, EmailInUseError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        'message': 'Registration successful.',
        'user': UserSerializer(user).data,
        'tokens': issue_tokens(user),
    }, status=status.HTTP_201_CREATED)


@extend_schema(
    request=UserLoginSerializer,
    responses={
        200: AuthResponseSerializer,
        400: ErrorResponseSerializer,
        401: ErrorResponseSerializer,
        403: ErrorResponseSerializer,
    },
    description="Authenticate with email and password to receive JWT tokens.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def login(request):
    """Login with email and password."""
    serializer = UserLoginSerializer(data=request.data)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        user = authenticate_user(**serializer.validated_data)
    except InvalidCredentialsError:
        return Response({'error': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)
    except InactiveAccountError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response({
        'message': 'Login successful',
        'user': UserSerializer(user).data,
        'tokens': issue_tokens(user),
    })


@extend_schema(
    responses={200: UserSerializer},
    description="Get the current authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    return Response(UserSerializer(request.user).data)
