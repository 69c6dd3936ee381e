import django_filters

from housing_app.models import GENDER_CHOICES, Property


class PropertyFilter(django_filters.FilterSet):
    gender = django_filters.ChoiceFilter(choices=GENDER_CHOICES, method="filter_gender")
    type = django_filters.CharFilter(field_name="type", lookup_expr="iexact")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    location = django_filters.CharFilter(field_name="address", lookup_expr="icontains")
    max_budget = django_filters.NumberFilter(field_name="monthly_price", lookup_expr="lte")
    featured = django_filters.BooleanFilter(field_name="is_featured")

    class Meta:
        model = Property
        fields = ["gender", "type", "category", "location", "max_budget", "featured"]

    def filter_gender(self, queryset, name, value):
        # "common" means no preference
        if not value or value == "common":
            return queryset
        return queryset.filter(gender=value)
