from django.urls import re_path

from . import consumers

websocket_urlpatterns = [
    re_path(r"ws/branches/(?P<branch_id>\d+)/orders/$", consumers.BranchOrdersConsumer.as_asgi()),
    re_path(r"ws/orders/(?P<order_id>\d+)/$", consumers.OrderStatusConsumer.as_asgi()),
]
