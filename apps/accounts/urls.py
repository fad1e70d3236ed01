from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    # OTP registration
    path('send-otp/', views.send_otp, name='send-otp'),
    path('resend-otp/', views.resend_otp, name='resend-otp'),
    path('verify-otp/', views.verify_otp, name='verify-otp'),

    # Authentication
    path('login/', views.login, name='login'),
    path('user/', views.get_current_user, name='current-user'),
]
