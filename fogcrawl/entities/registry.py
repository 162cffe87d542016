# fogcrawl/entities/registry.py
from typing import Any, Dict, Iterator, Self, Tuple

import polars as pl
import structlog

from fogcrawl.entities.components import Position, Viewshed

log = structlog.get_logger()

ENTITY_SCHEMA: dict[str, pl.DataType] = {
    "entity_id": pl.UInt32,
    "is_active": pl.Boolean,
    "x": pl.Int32,
    "y": pl.Int32,
    "name": pl.Utf8,
    "is_player": pl.Boolean,
    "is_hostile": pl.Boolean,
}


class EntityRegistry:
    """Column store of entities plus a sparse viewshed table.

    Positions, labels and the player/hostile markers live in a polars
    DataFrame.  Sight is an optional capability, so viewsheds are kept in a
    dict keyed by entity id; entities without an entry are invisible to the
    visibility system.
    """

    def __init__(self: Self):
        self.entities_df: pl.DataFrame = pl.DataFrame(schema=ENTITY_SCHEMA)
        self.viewsheds: Dict[int, Viewshed] = {}
        self._next_entity_id: int = 0
        log.debug("EntityRegistry initialized", schema=list(ENTITY_SCHEMA.keys()))

    def _get_next_id(self: Self) -> int:
        current_id = self._next_entity_id
        self._next_entity_id += 1
        if self._next_entity_id > 2**32 - 1:
            log.critical("Entity ID counter overflowed", next_id=self._next_entity_id)
            raise OverflowError("Entity ID counter overflowed (UInt32 limit reached).")
        return current_id

    def create_entity(
        self: Self,
        x: int,
        y: int,
        name: str,
        is_player: bool = False,
        is_hostile: bool = False,
        sight_range: int | None = None,
    ) -> int:
        # A rejected range must leave no row behind and keep the id unused
        viewshed = Viewshed(range=sight_range) if sight_range is not None else None
        new_id = self._get_next_id()
        log_context = {"name": name, "pos": (x, y), "sight_range": sight_range}

        entity_data = {
            "entity_id": [new_id],
            "is_active": [True],
            "x": [x],
            "y": [y],
            "name": [name],
            "is_player": [is_player],
            "is_hostile": [is_hostile],
        }
        new_entity_df = pl.DataFrame(entity_data, schema=ENTITY_SCHEMA)
        if self.entities_df.height == 0:
            self.entities_df = new_entity_df
        else:
            self.entities_df = pl.concat(
                [self.entities_df, new_entity_df.select(self.entities_df.columns)],
                how="vertical",
            )
        if viewshed is not None:
            self.viewsheds[new_id] = viewshed
        log.info("Entity created", entity_id=new_id, **log_context)
        return new_id

    def _active_row(self: Self, entity_id: int) -> pl.DataFrame:
        return self.entities_df.filter(
            (pl.col("entity_id") == entity_id) & pl.col("is_active")
        )

    def is_active(self: Self, entity_id: int) -> bool:
        return self._active_row(entity_id).height > 0

    def get_entity_component(
        self: Self, entity_id: int, component_name: str
    ) -> Any | None:
        """Retrieves the value of a specific component for a given *active* entity."""
        if component_name not in self.entities_df.columns:
            log.warning(
                "Component does not exist",
                entity_id=entity_id,
                component=component_name,
            )
            raise ValueError(
                f"Component '{component_name}' does not exist in ENTITY_SCHEMA."
            )
        entity_df = self._active_row(entity_id)
        if entity_df.height == 0:
            return None
        return entity_df.select(component_name).item()

    def set_entity_component(
        self: Self, entity_id: int, component_name: str, value: Any
    ) -> bool:
        log_context = {
            "entity_id": entity_id,
            "component": component_name,
            "new_value": value,
        }
        if component_name not in self.entities_df.columns:
            log.warning("Component does not exist", **log_context)
            raise ValueError(
                f"Component '{component_name}' does not exist in ENTITY_SCHEMA."
            )
        if component_name in ("entity_id", "is_active"):
            log.warning("Attempted to set protected component", **log_context)
            raise ValueError(f"Cannot directly set '{component_name}' component.")
        if not self.is_active(entity_id):
            log.debug("Entity not found or inactive, cannot set component", **log_context)
            return False

        target_dtype = ENTITY_SCHEMA[component_name]
        self.entities_df = self.entities_df.with_columns(
            pl.when((pl.col("entity_id") == entity_id) & pl.col("is_active"))
            .then(pl.lit(value, dtype=target_dtype))
            .otherwise(pl.col(component_name))
            .alias(component_name)
        )
        return True

    def get_position(self: Self, entity_id: int) -> Position | None:
        """Return the Position component for an entity if available."""
        entity_df = self._active_row(entity_id)
        if entity_df.height == 0:
            return None
        row = entity_df.row(0, named=True)
        return Position(int(row["x"]), int(row["y"]))

    def set_position(self: Self, entity_id: int, position: Position) -> bool:
        """Update an entity's position component."""
        if not self.is_active(entity_id):
            return False
        mask = (pl.col("entity_id") == entity_id) & pl.col("is_active")
        self.entities_df = self.entities_df.with_columns(
            pl.when(mask)
            .then(pl.lit(position.x, dtype=pl.Int32))
            .otherwise(pl.col("x"))
            .alias("x"),
            pl.when(mask)
            .then(pl.lit(position.y, dtype=pl.Int32))
            .otherwise(pl.col("y"))
            .alias("y"),
        )
        return True

    def get_name(self: Self, entity_id: int) -> str | None:
        return self.get_entity_component(entity_id, "name")

    def is_player(self: Self, entity_id: int) -> bool:
        return bool(self.get_entity_component(entity_id, "is_player"))

    def is_hostile(self: Self, entity_id: int) -> bool:
        return bool(self.get_entity_component(entity_id, "is_hostile"))

    def get_viewshed(self: Self, entity_id: int) -> Viewshed | None:
        if not self.is_active(entity_id):
            return None
        return self.viewsheds.get(entity_id)

    def iter_viewsheds(self: Self) -> Iterator[Tuple[int, Viewshed]]:
        """Yield ``(entity_id, viewshed)`` for active entities in id order."""
        active_ids = set(
            self.entities_df.filter(pl.col("is_active"))["entity_id"].to_list()
        )
        for entity_id in sorted(self.viewsheds):
            if entity_id in active_ids:
                yield entity_id, self.viewsheds[entity_id]

    def delete_entity(self: Self, entity_id: int) -> bool:
        """Mark an entity inactive and drop its viewshed."""
        log_context = {"entity_id": entity_id}
        if not self.is_active(entity_id):
            log.debug("Entity already inactive or does not exist", **log_context)
            return False
        self.entities_df = self.entities_df.with_columns(
            pl.when(pl.col("entity_id") == entity_id)
            .then(pl.lit(False))
            .otherwise(pl.col("is_active"))
            .alias("is_active")
        )
        self.viewsheds.pop(entity_id, None)
        log.info("Entity marked as inactive", **log_context)
        return True
