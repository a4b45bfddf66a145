from tablekit.services.filters import FilterOperator
from tablekit.services.table_type import Capability, TableType
from tests.models import Person

ALL_CAPABILITIES = frozenset(
    {Capability.FILTERABLE, Capability.SORTABLE, Capability.PAGINATABLE}
)


class PeopleTable(TableType):
    name = "people"
    capabilities = ALL_CAPABILITIES

    def default_options(self):
        return {"data_entity": Person, "attr": {"class": "table"}}

    def build_columns(self, builder):
        builder.add("position", "counter", label="#")
        builder.add("first_name", sortable=True)
        builder.add("last_name", sortable=True)
        builder.add("status")
        builder.add("age", "number", sortable=True)
        builder.add("team", field="team.name", expression=lambda entity: entity.team_id)

    def build_filters(self, builder):
        builder.add("status", FilterOperator.EQ, "status")
        builder.add("name", FilterOperator.LIKE, ["first_name", "last_name"])
        builder.add("min_age", FilterOperator.GEQ, "age", value_type="number")
        builder.add("team", FilterOperator.EQ, "team", value_map={"red": 1, "blue": 2})

    def pagination_options(self):
        return {"items_per_page": 10}

    def sort_options(self):
        return {"empty_column": "age", "empty_direction": "asc", "class_asc": "sort-asc"}

    def row_attributes(self, row):
        return {"data-id": str(row.item.id)}


class PlainPeopleTable(TableType):
    name = "plain_people"

    def default_options(self):
        return {"data_entity": Person, "empty_value": "Nobody here."}

    def build_columns(self, builder):
        builder.add("first_name")
        builder.add("last_name")
