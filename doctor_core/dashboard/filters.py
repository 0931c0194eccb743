# doctor_core/dashboard/filters.py
from __future__ import annotations

from datetime import date

from django_filters import rest_framework as filters
from django.utils.timezone import localdate

from doctor_core.appointments.models import Appointment, AppointmentStatus
from doctor_core.appointments.selectors import day_bounds

ALL = "ALL"


def one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # Feb 29
        return day.replace(year=day.year + 1, day=28)


class DashboardAppointmentFilter(filters.FilterSet):
    """
    ?status=SCHEDULED|...|ALL (default SCHEDULED)
    ?from=YYYY-MM-DD&to=YYYY-MM-DD (inclusive local days, default today .. +1 year)
    """
    status = filters.ChoiceFilter(
        choices=[*AppointmentStatus.choices, (ALL, "All")],
        method="filter_status",
    )

    class Meta:
        model = Appointment
        fields = []

    def __init__(self, data=None, *args, **kwargs):
        data = data.copy() if data is not None else {}
        today = localdate()
        for key, default in (
            ("status", AppointmentStatus.SCHEDULED),
            ("from", today.isoformat()),
            ("to", one_year_after(today).isoformat()),
        ):
            if not data.get(key):
                data[key] = default
        data["status"] = data["status"].strip().upper()
        super().__init__(data, *args, **kwargs)

    def filter_status(self, queryset, name, value):
        if value == ALL:
            return queryset
        return queryset.filter(status=value)

    def filter_from(self, queryset, name, value):
        start, _ = day_bounds(value)
        return queryset.filter(appointment_date__gte=start)

    def filter_to(self, queryset, name, value):
        _, end = day_bounds(value)
        return queryset.filter(appointment_date__lt=end)


# "from" is a keyword, so these can't be declared in the class body
DashboardAppointmentFilter.base_filters["from"] = filters.DateFilter(method="filter_from")
DashboardAppointmentFilter.base_filters["to"] = filters.DateFilter(method="filter_to")
