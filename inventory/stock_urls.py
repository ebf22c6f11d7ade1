from django.urls import include, path

from .views import CsvImportView, MovementListCreateView, StockCardView, TransferView

urlpatterns = [
    path("card/", StockCardView.as_view(), name="stock-card"),
    path("movements/", MovementListCreateView.as_view(), name="movement-list"),
    path("transfer/", TransferView.as_view(), name="stock-transfer"),
    path("import-csv/", CsvImportView.as_view(), name="stock-import-csv"),
    path("opname/", include("opname.urls")),
]

# EOF
