"""Declarative cross-relation aggregation.

An ``AggregationSpec`` names a base model, the related models to group and the
aggregates to compute over each. The same report compiles to a SQLAlchemy select
(``compile_rows`` / ``compile_count``) or evaluates over plain in-memory rows
(``evaluate``), which keeps the reporting semantics independent of the SQL
dialect.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import Select, and_, func, select
from sqlalchemy.sql.elements import ColumnElement

from storefront.domain.models import OrderItem, Product, Review


@dataclass(frozen=True)
class Aggregate:
    label: str
    function: str  # "count_distinct" | "sum" | "avg"
    column: str
    precision: Optional[int] = None

    def to_sql(self, model) -> ColumnElement:
        column = getattr(model, self.column)
        if self.function == "count_distinct":
            expression = func.count(column.distinct())
        elif self.function == "sum":
            expression = func.sum(column)
        elif self.function == "avg":
            expression = func.avg(column)
        else:
            raise ValueError(f"Unsupported aggregate function: {self.function}")
        if self.precision is not None:
            expression = func.round(expression, self.precision)
        return expression.label(self.label)

    def evaluate(self, values: Sequence[Any]) -> Any:
        if self.function == "count_distinct":
            return len(set(values))
        if self.function == "sum":
            return sum(values)
        if self.function == "avg":
            result = Decimal(sum(values)) / Decimal(len(values))
            if self.precision is not None:
                result = result.quantize(Decimal(1).scaleb(-self.precision), rounding=ROUND_HALF_UP)
            return result
        raise ValueError(f"Unsupported aggregate function: {self.function}")


@dataclass(frozen=True)
class GroupedRelation:
    """A related model grouped by ``join_column`` and inner-joined to the base key."""
    model: type
    join_column: str
    aggregates: tuple

    def subquery(self):
        key = getattr(self.model, self.join_column)
        return (
            select(key.label("group_key"), *(aggregate.to_sql(self.model) for aggregate in self.aggregates))
            .group_by(key)
            .subquery()
        )


@dataclass(frozen=True)
class AggregationSpec:
    base: type
    key: str
    relations: tuple
    order_by: str
    descending: bool = True
    filters: Dict[str, str] = field(default_factory=dict)  # base column -> substring

    def with_filters(self, **substrings: str) -> "AggregationSpec":
        return AggregationSpec(
            base=self.base,
            key=self.key,
            relations=self.relations,
            order_by=self.order_by,
            descending=self.descending,
            filters={column: value for column, value in substrings.items()},
        )

    # SQL

    def _joined(self, with_aggregates: bool):
        base_key = getattr(self.base, self.key)
        statement = select(self.base if with_aggregates else base_key)
        aggregate_columns = {}
        for relation in self.relations:
            subquery = relation.subquery()
            statement = statement.join(subquery, subquery.c.group_key == base_key)
            for aggregate in relation.aggregates:
                aggregate_columns[aggregate.label] = subquery.c[aggregate.label]
        if with_aggregates:
            statement = statement.add_columns(*aggregate_columns.values())
        conditions = [
            getattr(self.base, column).icontains(value, autoescape=True)
            for column, value in self.filters.items()
        ]
        if conditions:
            statement = statement.where(and_(*conditions))
        return statement, aggregate_columns

    def compile_count(self) -> Select:
        statement, _ = self._joined(with_aggregates=False)
        return select(func.count()).select_from(statement.subquery())

    def compile_rows(self, offset: int = 0, limit: Optional[int] = None) -> Select:
        """Rows of ``(base entity, *aggregates)`` in report order."""
        statement, aggregate_columns = self._joined(with_aggregates=True)
        order_column = aggregate_columns[self.order_by]
        base_key = getattr(self.base, self.key)
        statement = statement.order_by(
            order_column.desc() if self.descending else order_column.asc(),
            base_key.asc(),
        ).offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return statement

    # In memory

    def evaluate(self, tables: Mapping[type, Iterable[Any]], offset: int = 0, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Evaluate over plain objects; ``tables`` maps each model to its rows."""
        grouped: Dict[type, Dict[Any, List[Any]]] = {}
        for relation in self.relations:
            buckets: Dict[Any, List[Any]] = defaultdict(list)
            for row in tables.get(relation.model, ()):
                buckets[getattr(row, relation.join_column)].append(row)
            grouped[relation.model] = buckets

        results = []
        for base_row in tables.get(self.base, ()):
            if not self._matches(base_row):
                continue
            key = getattr(base_row, self.key)
            if any(not grouped[relation.model].get(key) for relation in self.relations):
                continue
            result = {"row": base_row}
            for relation in self.relations:
                rows = grouped[relation.model][key]
                for aggregate in relation.aggregates:
                    result[aggregate.label] = aggregate.evaluate([getattr(row, aggregate.column) for row in rows])
            results.append(result)

        results.sort(key=lambda result: getattr(result["row"], self.key))
        results.sort(key=lambda result: result[self.order_by], reverse=self.descending)
        end = None if limit is None else offset + limit
        return results[offset:end]

    def _matches(self, row: Any) -> bool:
        return all(
            value.lower() in (getattr(row, column) or "").lower()
            for column, value in self.filters.items()
        )


BESTSELLERS = AggregationSpec(
    base=Product,
    key="id",
    relations=(
        GroupedRelation(OrderItem, "product_id", (
            Aggregate("num_of_times_ordered", "count_distinct", "order_id"),
            Aggregate("total_units_ordered", "sum", "quantity"),
        )),
        GroupedRelation(Review, "product_id", (
            Aggregate("average_rating", "avg", "rating", precision=2),
        )),
    ),
    order_by="num_of_times_ordered",
)


def format_rating(value: Any, places: int = 2) -> Optional[str]:
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
