"""
URL configuration for Gatehouse.
"""
from django.contrib import admin
from django.urls import path
from ninja import NinjaAPI

from apps.identity.api import router as identity_router
from apps.geocoding.api import router as geocoding_router
from apps.addresses.api import member_router as member_address_router
from apps.addresses.api import admin_router as admin_address_router
from apps.visitors.api import member_router as member_visitor_router
from apps.visitors.api import guard_router
from apps.visitors.api import check_in_router
from apps.governance.api import router as governance_router

api = NinjaAPI(
    title="Gatehouse API",
    version="1.0.0",
    description="Gated community visitor management API",
    docs_url="/docs",
)

api.add_router("/identity/", identity_router)
api.add_router("/geocoding/", geocoding_router)
api.add_router("/member/addresses", member_address_router)
api.add_router("/admin/addresses", admin_address_router)
api.add_router("/member/visitors", member_visitor_router)
api.add_router("/guard/", guard_router)
api.add_router("/admin/check-ins", check_in_router)
api.add_router("/governance/", governance_router)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api.urls),
]
