from django.urls import path
from . import views

urlpatterns = [
    # Menu
    path('menu/', views.menu, name='menu'),
    path('menu/items/', views.add_menu_item, name='add_menu_item'),

    # Inventory
    path('inventory/<str:item_id>/release/', views.release_stock, name='release_stock'),

    # Checkout
    path('checkout/', views.checkout, name='checkout'),

    # Orders
    path('orders/', views.customer_orders, name='customer_orders'),
    path('orders/<str:order_id>/', views.order_detail, name='order_detail'),
    path('orders/<str:order_id>/status/', views.update_status, name='update_status'),

    # Kitchen
    path('queue/', views.kitchen_queue, name='kitchen_queue'),
]
