import logging
from typing import Dict, Iterable, List

from capacity.entities import Operation, Skill, Worker

logger = logging.getLogger(__name__)


class Catalog:
    """Read-only views over the externally owned operations, skills and workers."""

    def __init__(
        self,
        operations: Iterable[Operation] = (),
        skills: Iterable[Skill] = (),
        workers: Iterable[Worker] = (),
    ):
        self.replace(operations, skills, workers)

    def replace(
        self,
        operations: Iterable[Operation],
        skills: Iterable[Skill],
        workers: Iterable[Worker],
    ) -> None:
        self._operations: Dict[str, Operation] = {op.id: op for op in operations}
        self._skills: Dict[str, Skill] = {skill.id: skill for skill in skills}
        self._skill_names: Dict[str, str] = {
            skill.id: skill.name for skill in self._skills.values()
        }
        self._workers: List[Worker] = list(workers)

    @property
    def operations(self) -> List[Operation]:
        return list(self._operations.values())

    @property
    def skills(self) -> List[Skill]:
        return list(self._skills.values())

    @property
    def workers(self) -> List[Worker]:
        return list(self._workers)

    def resolve_operations(self, operation_ids: Iterable[str]) -> List[Operation]:
        """Operations for the given ids; unknown ids are skipped."""
        resolved = []
        for operation_id in operation_ids:
            operation = self._operations.get(operation_id)
            if operation is None:
                logger.debug(f"Operation {operation_id} not in catalog")
                continue
            resolved.append(operation)
        return resolved

    def skill_name(self, skill_id: str) -> str:
        return self._skill_names.get(skill_id, skill_id)

    def add_skill(self, skill: Skill) -> None:
        self._skills[skill.id] = skill
        self._skill_names[skill.id] = skill.name
