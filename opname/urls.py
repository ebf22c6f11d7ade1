from django.urls import path

from .views import OpnameCancelView, OpnameCommitView, OpnameCountView, OpnameDetailView, OpnameListStartView

urlpatterns = [
    path("", OpnameListStartView.as_view(), name="opname-list"),
    path("start/", OpnameListStartView.as_view(), name="opname-start"),
    path("<int:opname_id>/", OpnameDetailView.as_view(), name="opname-detail"),
    path("<int:opname_id>/count/", OpnameCountView.as_view(), name="opname-count"),
    path("<int:opname_id>/commit/", OpnameCommitView.as_view(), name="opname-commit"),
    path("<int:opname_id>/cancel/", OpnameCancelView.as_view(), name="opname-cancel"),
]
