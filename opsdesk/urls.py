"""Root URLconf: server-rendered pages plus the JSON API under /api/."""
from django.urls import include, path

from accounts.urls import api_urlpatterns as accounts_api
from operations.urls import api_urlpatterns as operations_api
from pricing.urls import api_urlpatterns as pricing_api

api_patterns = accounts_api + pricing_api + operations_api

urlpatterns = [
    path('accounts/', include('accounts.urls')),
    path('api/', include((api_patterns, 'api'))),
    path('', include('pricing.urls')),
]
