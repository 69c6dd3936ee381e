from django.urls import include, path

from housing_app import dashboards
from housing_app.api.views import (
    # Listings
    PropertyListView, PropertyDetailView, PropertyRoomsView,

    # Reviews & favourites
    PropertyReviewListCreateView, FavoriteListView, PropertyFavoriteView,

    # Insights
    PropertyInsightsView, RecommendationsView,

    # Bookings
    BookingQuoteView, BookingListCreateView, BookingDetailView,
)

urlpatterns = [
    # --- Auth & profile ---
    path("", include("user_app.api.urls")),

    # --- Listings ---
    path("properties/",                       PropertyListView.as_view(),             name="property-list"),
    path("properties/<int:pk>/",              PropertyDetailView.as_view(),           name="property-detail"),
    path("properties/<int:pk>/rooms/",        PropertyRoomsView.as_view(),            name="property-rooms"),
    path("properties/<int:pk>/reviews/",      PropertyReviewListCreateView.as_view(), name="property-reviews"),
    path("properties/<int:pk>/insights/",     PropertyInsightsView.as_view(),         name="property-insights"),
    path("recommendations/",                  RecommendationsView.as_view(),          name="recommendations"),

    # --- Favourites ---
    path("favorites/",                        FavoriteListView.as_view(),             name="favorite-list"),
    path("properties/<int:pk>/favorite/",     PropertyFavoriteView.as_view(),         name="property-favorite"),

    # --- Bookings ---
    path("bookings/quote/",                   BookingQuoteView.as_view(),             name="booking-quote"),
    path("bookings/",                         BookingListCreateView.as_view(),        name="booking-list"),
    path("bookings/<int:pk>/",                BookingDetailView.as_view(),            name="booking-detail"),

    # --- Dashboards ---
    path("dashboard/student/",                dashboards.student_dashboard,           name="dashboard-student"),
    path("dashboard/merchant/",               dashboards.merchant_dashboard,          name="dashboard-merchant"),
    path("dashboard/admin/",                  dashboards.admin_dashboard,             name="dashboard-admin"),
]
