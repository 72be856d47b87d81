from django.urls import re_path

from . import consumers

websocket_urlpatterns = [
    re_path(r"ws/kds/(?P<branch_id>\d+)/$", consumers.KitchenDisplayConsumer.as_asgi()),
]
