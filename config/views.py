import logging

from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger('apps.errors')


def health_check(request):
    """Liveness probe with a trivial database round-trip."""
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
    return JsonResponse({'status': 'ok'})


def error_404(request, exception):
    return JsonResponse({'error': f'No route for {request.path}'}, status=404)


def error_500(request):
    # Django has already logged the traceback on django.request.
    logger.error('Unhandled error on %s %s', request.method, request.path)
    return JsonResponse({'error': 'Internal server error'}, status=500)
