# service/action_executor.py
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple
from model.action import ActionKind, ActionResult
from model.intent import Classification, EntityKind, IntentKind
from repository.record_repository import RecordRepository, get_record_repository
from service.handlers import diet, measurement, recipe, reminder, shopping, steps, wishlist, workout
from service.handlers.common import Handler
from util.errors import RecordStoreError
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

ROUTES: Dict[Tuple[EntityKind, IntentKind], Handler] = {
    (EntityKind.workout, IntentKind.add): workout.add,
    (EntityKind.workout, IntentKind.update): workout.update,
    (EntityKind.workout, IntentKind.delete): workout.delete,
    (EntityKind.diet, IntentKind.add): diet.add,
    (EntityKind.diet, IntentKind.update): diet.update,
    (EntityKind.diet, IntentKind.delete): diet.delete,
    (EntityKind.recipe, IntentKind.add): recipe.add,
    (EntityKind.recipe, IntentKind.update): recipe.update,
    (EntityKind.recipe, IntentKind.delete): recipe.delete,
    (EntityKind.steps, IntentKind.add): steps.add,
    (EntityKind.steps, IntentKind.update): steps.update,
    (EntityKind.steps, IntentKind.delete): steps.delete,
    (EntityKind.measurement, IntentKind.add): measurement.add,
    (EntityKind.measurement, IntentKind.update): measurement.update,
    (EntityKind.measurement, IntentKind.delete): measurement.delete,
    (EntityKind.reminder, IntentKind.add): reminder.add,
    (EntityKind.reminder, IntentKind.update): reminder.update,
    (EntityKind.reminder, IntentKind.delete): reminder.delete,
    (EntityKind.shopping, IntentKind.add): shopping.add,
    (EntityKind.shopping, IntentKind.update): shopping.update,
    (EntityKind.shopping, IntentKind.delete): shopping.delete,
    (EntityKind.wishlist, IntentKind.add): wishlist.add,
    (EntityKind.wishlist, IntentKind.update): wishlist.update,
    (EntityKind.wishlist, IntentKind.delete): wishlist.delete,
}

_ROUTED_ENTITIES = frozenset(entity for entity, _ in ROUTES)


class ActionExecutor:
    """
    Flow:
    - query/chat never touch the store.
    - (entity, intent) picks one handler; unknown pairs come back as a failed result.
    - Store failures are turned into {success: false}; nothing here raises.
    """

    def __init__(
        self,
        store: Optional[RecordRepository] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store if store is not None else get_record_repository()
        self._today = today

    async def execute(
        self,
        classification: Classification,
        override_values: Optional[Dict[str, Any]] = None,
    ) -> ActionResult:
        intent, entity = classification.intent, classification.entity
        if intent in (IntentKind.query, IntentKind.chat):
            return ActionResult.ok(ActionKind.query, "No action needed for query")

        if entity not in _ROUTED_ENTITIES:
            logger.info("action.unrouted entity=%s intent=%s", entity.value, intent.value)
            return ActionResult.fail(f"Unknown entity: {entity.value}")
        handler = ROUTES.get((entity, intent))
        if handler is None:
            return ActionResult.fail(f"Unknown action: {intent.value} for {entity.value}")

        values = dict(
            override_values if override_values is not None else classification.extracted_values
        )
        if classification.time_reference and "time_reference" not in values:
            values["time_reference"] = classification.time_reference

        try:
            with timed(logger, f"action.{entity.value}.{intent.value}"):
                result = await handler(self._store, values, self._today())
        except RecordStoreError as e:
            logger.error(
                "action.store.error entity=%s intent=%s err=%s", entity.value, intent.value, e
            )
            return ActionResult.fail(str(e))

        if not result.success:
            logger.info(
                "action.rejected entity=%s intent=%s err=%s", entity.value, intent.value, result.error
            )
        return result
