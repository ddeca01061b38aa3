from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from storefront.core.config import settings
from storefront.core.logging import get_logger
from storefront.schemas.checkout import PersonalInfo

logger = get_logger(__name__)


class PersonalInfoStore(Protocol):
    def get(self) -> Optional[PersonalInfo]: ...

    def save(self, info: PersonalInfo) -> None: ...

    def clear(self) -> None: ...


class InMemoryPersonalInfoStore:
    def __init__(self, initial: PersonalInfo | None = None) -> None:
        self._info = initial

    def get(self) -> Optional[PersonalInfo]:
        return self._info

    def save(self, info: PersonalInfo) -> None:
        self._info = info

    def clear(self) -> None:
        self._info = None


class JsonFilePersonalInfoStore:
    """Keeps the customer's last checkout data in a local JSON file."""

    def __init__(self, path: Path | str | None = None) -> None:
        resolved = path or settings.PERSONAL_INFO_PATH
        if resolved is None:
            resolved = Path.home() / ".storefront" / "personal_info.json"
        self.path = Path(resolved)

    def get(self) -> Optional[PersonalInfo]:
        if not self.path.exists():
            return None
        try:
            return PersonalInfo.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, PydanticValidationError) as exc:
            logger.warning("could not read personal info", extra={"path": str(self.path), "error": str(exc)})
            return None

    def save(self, info: PersonalInfo) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(info.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
