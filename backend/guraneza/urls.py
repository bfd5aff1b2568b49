"""
URL Configuration for GuraNeza
"""
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.http import JsonResponse
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from apps.core.admin_site import custom_admin_site


def home_view(request):
    """API root information"""
    base = f"{request.scheme}://{request.get_host()}"
    return JsonResponse({
        'message': 'Welcome to GuraNeza API',
        'version': '1.0.0',
        'description': 'Multi-vendor marketplace for Rwanda',
        'documentation': {
            'swagger_ui': f"{base}/api/docs",
            'redoc': f"{base}/api/redoc",
            'openapi_schema': f"{base}/api/schema"
        },
        'endpoints': {
            'api': '/api/v1/',
            'admin': '/admin/',
        }
    })


urlpatterns = [
    path('', home_view, name='home'),
    path('admin/', custom_admin_site.urls),

    # API v1 endpoints
    path('api/v1/', include('guraneza.api_urls')),

    # API Documentation
    path('api/schema', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs', SpectacularSwaggerView.as_view(url_name='schema'),
         name='swagger-ui'),
    path('api/redoc', SpectacularRedocView.as_view(url_name='schema'),
         name='redoc'),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL,
                          document_root=settings.STATIC_ROOT)
