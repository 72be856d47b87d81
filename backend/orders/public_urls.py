from django.urls import path

from .views import PublicOrderStatusView, QRMenuOrderView

app_name = "orders_public"

urlpatterns = [
    path("menu/<str:qr_token>/order/", QRMenuOrderView.as_view(), name="qr-order"),
    path("orders/<int:pk>/status/", PublicOrderStatusView.as_view(), name="order-status"),
]
