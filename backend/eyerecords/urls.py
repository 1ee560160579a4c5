from django.urls import path
from .views import RecordDetailView, RecordListView, RecordSearchView

urlpatterns = [
    path('records/', RecordListView.as_view(), name='record-list'),
    path('records/search/', RecordSearchView.as_view(), name='record-search'),
    path('records/<str:mobile>/', RecordDetailView.as_view(), name='record-detail'),
]
