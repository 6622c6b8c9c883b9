"""Identifiers for sections and (section, stage) scopes."""

from .enums import Stage
from ...shared.base import ValueObject

# Reserved section collecting every task that cannot be placed in a catalog section.
SIN_CATEGORIA_SECTION_ID = "__sin_categoria__"

STAGE_KEY_SEPARATOR = "-"


class StageKey(ValueObject):
    """A stage scoped to one section; serialized as ``"{section_id}-{STAGE}"``."""

    section_id: str
    stage: Stage

    def __str__(self) -> str:
        return f"{self.section_id}{STAGE_KEY_SEPARATOR}{self.stage.value}"

    @classmethod
    def parse(cls, key: "str | StageKey | tuple[str, Stage | str]") -> "StageKey | None":
        """
        Parse a stage key, returning None for malformed input.

        Section ids may themselves contain the separator, so the key is
        matched against ``"-{STAGE}"`` suffixes, trying each stage in enum
        order; whatever precedes the matched suffix is the section id. No
        stage name ends with ``-`` plus another stage name, so at most one
        suffix can match.
        """
        if isinstance(key, StageKey):
            return key
        if isinstance(key, tuple):
            section_id, stage = key
            if not section_id or str(getattr(stage, "value", stage)) not in Stage.__members__:
                return None
            return cls(section_id=section_id, stage=Stage(getattr(stage, "value", stage)))
        if not isinstance(key, str):
            return None
        for stage in Stage:
            suffix = f"{STAGE_KEY_SEPARATOR}{stage.value}"
            if key.endswith(suffix) and len(key) > len(suffix):
                return cls(section_id=key[: -len(suffix)], stage=stage)
        return None
