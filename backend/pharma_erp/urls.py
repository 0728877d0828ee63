from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView

from users.views import RoleTokenObtainPairView

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/auth/token/', RoleTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/users/', include('users.urls')),
    path('api/masters/', include('masters.urls')),
    path('api/inventory/', include('inventory.urls')),
    path('api/purchase/', include('purchase.urls')),
    path('api/sales/', include('sales.urls')),
    path('api/core/', include('core.urls')),
    path('api/reports/', include('reports.urls')),
]
