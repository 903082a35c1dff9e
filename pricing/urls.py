from django.urls import path
from . import views

app_name = 'pricing'

urlpatterns = [
    path('', views.index, name='index'),
]

api_urlpatterns = [
    path('categories', views.category_list, name='category_list'),
    path('categories/<int:pk>', views.category_detail, name='category_detail'),
    path('exchange-rate', views.exchange_rate, name='exchange_rate'),
    path('extract-pdf', views.extract_pdf, name='extract_pdf'),
    path('pricing/calculate', views.calculate_invoice, name='calculate_invoice'),
    path('pricing-sessions', views.pricing_session_list, name='pricing_session_list'),
    path('pricing-sessions/<int:pk>', views.pricing_session_detail, name='pricing_session_detail'),
    path('pricing-sessions/<int:pk>/status', views.pricing_session_status, name='pricing_session_status'),
    path('send-email-report', views.send_email_report, name='send_email_report'),
    path('extract-amazon-price', views.extract_amazon_price, name='extract_amazon_price'),
    path('amazon/calculate', views.calculate_amazon_view, name='calculate_amazon'),
    path('amazon-pricing-sessions', views.amazon_session_list, name='amazon_session_list'),
    path('amazon-pricing-sessions/<int:pk>', views.amazon_session_detail, name='amazon_session_detail'),
    path('amazon-pricing-sessions/<int:pk>/status', views.amazon_session_status, name='amazon_session_status'),
    path('amazon-pricing-sessions/<int:pk>/email', views.amazon_session_email, name='amazon_session_email'),
]
