# repository/namespaces.py
from enum import Enum
from typing import Final
from config.settings import settings

ROOT: Final[str] = settings.STORE_NAMESPACE


class Table(str, Enum):
    workouts = "workouts"
    diet_logs = "diet_logs"
    food_recipes = "food_recipes"
    steps = "steps"
    body_measurements = "body_measurements"
    reminders = "reminders"
    shopping_list = "shopping_list"
    wishlist = "wishlist"


def table_prefix(table: Table, root: str = ROOT) -> str:
    return f"{root}:{table.value}"


def row_key(table: Table, row_id: int, root: str = ROOT) -> str:
    return f"{table_prefix(table, root)}:{row_id}"


def seq_key(table: Table, root: str = ROOT) -> str:
    # INCR counter handing out row ids
    return f"{table_prefix(table, root)}:seq"


def index_key(table: Table, root: str = ROOT) -> str:
    # sorted set of row ids, score = id, i.e. insertion order
    return f"{table_prefix(table, root)}:index"
