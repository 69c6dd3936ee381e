"""
Row-oriented access to the named tables.

    rows = client.table("properties").select(related=("location",)).eq("is_verified", True).execute()
    row = client.table("bookings").insert({...}).single()

Rows are plain dicts keyed by column name (foreign keys as `<name>_id`).
The `id` column always means the primary key, so `profiles` rows carry the
owning user's id. Every failure surfaces as `DataError`.
"""

import logging

from django.apps import apps
from django.core.exceptions import FieldDoesNotExist, FieldError, ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from .errors import DataError

logger = logging.getLogger(__name__)


TABLES = {
    "profiles": "housing_app.Profile",
    "merchants": "housing_app.Merchant",
    "locations": "housing_app.Location",
    "facilities": "housing_app.Facility",
    "properties": "housing_app.Property",
    "property_images": "housing_app.PropertyImage",
    "rooms": "housing_app.Room",
    "bookings": "housing_app.Booking",
    "favorites": "housing_app.Favorite",
    "reviews": "housing_app.Review",
    "system_settings": "housing_app.SystemSetting",
}


def get_model(table: str):
    try:
        label = TABLES[table]
    except KeyError:
        raise DataError(f'relation "{table}" does not exist', code="unknown_table") from None
    return apps.get_model(label)


def table_for_model(model) -> str | None:
    label = model._meta.label
    for name, registered in TABLES.items():
        if registered == label:
            return name
    return None


def serialize_row(obj, columns=None) -> dict:
    """Concrete column values of `obj`, with `id` set to its primary key."""
    row = {}
    for field in obj._meta.concrete_fields:
        row[field.attname] = getattr(obj, field.attname)
    row["id"] = obj.pk
    if columns:
        row = {col: row[col] for col in columns if col in row}
    return row


def _embed(obj, name: str):
    field = obj._meta.get_field(name)
    if field.many_to_many or field.one_to_many:
        return [serialize_row(o) for o in getattr(obj, name).all()]
    related = getattr(obj, name, None)
    return serialize_row(related) if related is not None else None


class TableQuery:
    """
    Chainable query over one table. Filters apply to select, update and
    delete alike; nothing touches the database until `execute()`.
    """

    def __init__(self, table: str):
        self.table = table
        self.model = get_model(table)
        self._columns = None
        self._related = ()
        self._filters = []
        self._ordering = []
        self._limit = None
        self._action = "select"
        self._payload = None

    # ---- projection ----
    def select(self, columns: str = "*", related=()):
        if columns and columns.strip() != "*":
            self._columns = [c.strip() for c in columns.split(",") if c.strip()]
        self._related = tuple(related)
        return self

    # ---- filters ----
    def _lookup(self, column: str, op: str | None = None) -> str:
        name = "pk" if column == "id" else column
        return f"{name}__{op}" if op else name

    def _add(self, negate: bool, lookup: str, value):
        self._filters.append((negate, {lookup: value}))
        return self

    def eq(self, column, value):
        return self._add(False, self._lookup(column), value)

    def neq(self, column, value):
        return self._add(True, self._lookup(column), value)

    def lt(self, column, value):
        return self._add(False, self._lookup(column, "lt"), value)

    def lte(self, column, value):
        return self._add(False, self._lookup(column, "lte"), value)

    def gt(self, column, value):
        return self._add(False, self._lookup(column, "gt"), value)

    def gte(self, column, value):
        return self._add(False, self._lookup(column, "gte"), value)

    def in_(self, column, values):
        return self._add(False, self._lookup(column, "in"), list(values))

    def is_(self, column, value):
        if value is None:
            return self._add(False, self._lookup(column, "isnull"), True)
        return self.eq(column, value)

    def ilike(self, column, pattern: str):
        starts = pattern.startswith("%")
        ends = pattern.endswith("%") and len(pattern) > 1
        needle = pattern.strip("%")
        if starts and ends:
            op = "icontains"
        elif ends:
            op = "istartswith"
        elif starts:
            op = "iendswith"
        else:
            op = "iexact"
        return self._add(False, self._lookup(column, op), needle)

    def order(self, column, desc: bool = False):
        name = "pk" if column == "id" else column
        self._ordering.append(f"-{name}" if desc else name)
        return self

    def limit(self, count: int):
        self._limit = int(count)
        return self

    # ---- mutations ----
    def insert(self, values):
        self._action = "insert"
        self._payload = values
        return self

    def update(self, values: dict):
        self._action = "update"
        self._payload = dict(values)
        return self

    def delete(self):
        self._action = "delete"
        return self

    # ---- terminals ----
    def execute(self) -> list:
        try:
            if self._action == "insert":
                return self._do_insert()
            if self._action == "update":
                return self._do_update()
            if self._action == "delete":
                return self._do_delete()
            return [self._row(obj) for obj in self._queryset()]
        except DataError:
            raise
        except ValidationError as exc:
            raise DataError(_validation_message(exc), code="invalid") from exc
        except IntegrityError as exc:
            logger.warning("integrity error on %s: %s", self.table, exc)
            raise DataError("duplicate key value violates a unique constraint", code="conflict") from exc
        except (FieldError, FieldDoesNotExist, ValueError, TypeError) as exc:
            raise DataError(str(exc), code="bad_request") from exc
        except DatabaseError as exc:
            logger.exception("database error on %s", self.table)
            raise DataError(str(exc), code="database_error") from exc

    def single(self) -> dict:
        rows = self.execute()
        if len(rows) != 1:
            raise DataError(
                "JSON object requested, multiple (or no) rows returned",
                code="not_found" if not rows else "multiple_rows",
            )
        return rows[0]

    def maybe_single(self) -> dict | None:
        rows = self.execute()
        if len(rows) > 1:
            raise DataError("JSON object requested, multiple rows returned", code="multiple_rows")
        return rows[0] if rows else None

    # ---- internals ----
    def _queryset(self):
        qs = self.model.objects.all()
        for negate, kwargs in self._filters:
            qs = qs.exclude(**kwargs) if negate else qs.filter(**kwargs)
        forward, reverse = [], []
        for name in self._related:
            field = self.model._meta.get_field(name)
            (reverse if field.many_to_many or field.one_to_many else forward).append(name)
        if forward:
            qs = qs.select_related(*forward)
        if reverse:
            qs = qs.prefetch_related(*reverse)
        if self._ordering:
            qs = qs.order_by(*self._ordering)
        if self._limit is not None:
            qs = qs[: self._limit]
        return qs

    def _row(self, obj) -> dict:
        row = serialize_row(obj, self._columns)
        for name in self._related:
            row[name] = _embed(obj, name)
        return row

    def _to_fields(self, values: dict) -> dict:
        pk_name = self.model._meta.pk.attname
        out = {}
        for key, value in values.items():
            out[pk_name if key == "id" else key] = value
        return out

    def _do_insert(self) -> list:
        payload = self._payload
        items = payload if isinstance(payload, (list, tuple)) else [payload]
        created = []
        with transaction.atomic():
            for values in items:
                obj = self.model(**self._to_fields(values))
                obj.full_clean()
                obj.save(force_insert=True)
                created.append(obj)
        return [self._row(obj) for obj in created]

    def _do_update(self) -> list:
        if not self._filters:
            raise DataError("UPDATE requires a WHERE clause", code="bad_request")
        values = self._to_fields(self._payload)
        changed = []
        with transaction.atomic():
            for obj in self._queryset():
                for key, value in values.items():
                    setattr(obj, key, value)
                obj.full_clean()
                obj.save()
                changed.append(obj)
        return [self._row(obj) for obj in changed]

    def _do_delete(self) -> list:
        if not self._filters:
            raise DataError("DELETE requires a WHERE clause", code="bad_request")
        removed = []
        with transaction.atomic():
            for obj in self._queryset():
                row = self._row(obj)
                obj.delete()
                removed.append(row)
        return removed


def _validation_message(exc: ValidationError) -> str:
    if hasattr(exc, "message_dict"):
        parts = []
        for field, messages in exc.message_dict.items():
            label = "" if field == "__all__" else f"{field}: "
            parts.append(label + " ".join(messages))
        return "; ".join(parts)
    return " ".join(exc.messages)
