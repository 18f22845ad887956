# group_builder/services/configurations.py
"""
Named, reusable group arrangements.

A configuration is built from the live groups and the selected adventure,
written once to the store, and never changed afterwards. Loading one replaces
the live groups wholesale through the mutator.
"""
import logging
from typing import List, Optional, Protocol

from group_builder.domain.errors import GroupBuilderError, NotFoundError, PersistenceError, Result
from group_builder.domain.models import GroupConfiguration, clone_groups
from group_builder.services.entity_manager import EntityManager
from group_builder.services.mutator import TransactionalMutator

logger = logging.getLogger(__name__)


class ConfigurationStore(Protocol):
    async def create_configuration(self, config: GroupConfiguration) -> GroupConfiguration:
        ...

    async def list_configurations(self, vendor_id: str) -> List[GroupConfiguration]:
        ...


class ConfigurationPersistence:
    def __init__(self, entities: EntityManager, mutator: TransactionalMutator, store: ConfigurationStore):
        self.entities = entities
        self.mutator = mutator
        self.store = store
        self.configurations: List[GroupConfiguration] = []

    def build(self, name: str, description: str = "") -> GroupConfiguration:
        groups = self.entities.groups
        adventure = self.entities.selected_adventure
        return GroupConfiguration(
            name=name,
            description=description,
            adventure_id=adventure.id if adventure else None,
            vendor_id=adventure.vendor_id if adventure else None,
            group_count=len(groups),
            total_participants=sum(len(g.participants) for g in groups),
            snapshot=clone_groups(groups),
        )

    async def save(self, name: str, description: str = "") -> Result:
        config = self.build(name, description)
        try:
            saved = await self.store.create_configuration(config)
        except GroupBuilderError as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception("Save configuration error")
            return Result.fail(PersistenceError(str(e)))
        self.configurations.insert(0, saved)
        logger.info("Saved configuration %s (%s groups)", saved.id, saved.group_count)
        return Result.ok(saved)

    async def list(self, vendor_id: Optional[str] = None) -> Result:
        if vendor_id is None and self.entities.selected_adventure:
            vendor_id = self.entities.selected_adventure.vendor_id
        if vendor_id is None:
            return Result.fail(PersistenceError("No vendor selected"))
        try:
            configs = await self.store.list_configurations(vendor_id)
        except GroupBuilderError as e:
            return Result.fail(e)
        except Exception as e:
            logger.exception("Load configurations error")
            return Result.fail(PersistenceError(str(e)))
        self.configurations = list(configs)
        return Result.ok(list(configs))

    def find(self, config_id: str) -> Optional[GroupConfiguration]:
        return next((c for c in self.configurations if c.id == config_id), None)

    def load(self, config_id: str) -> Result:
        # participant ids in the snapshot are not checked against the current pool
        config = self.find(config_id)
        if config is None:
            return Result.fail(NotFoundError(f"Configuration {config_id} not found"))
        return self.mutator.load_groups(config.snapshot)
