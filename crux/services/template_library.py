"""Template Library Service - server-resident portfolio templates.

Loads the template manifest YAML and serves template bodies by id.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..errors import TemplateNotFoundError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.yaml"


class TemplateEntry(BaseModel):
    """A template known to the library."""
    id: str
    name: str
    file: str = Field(description="File name relative to the template directory")
    description: str = ""

    def summary(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "source": "server"}


class TemplateLibrary:
    """Service for server-side template lookup.

    Loads ``manifest.yaml`` from the template directory and provides:
    - Template listing for the picker
    - Template body lookup by id

    HTML files present in the directory but missing from the manifest are
    served too, named after their file stem.
    """

    def __init__(self, template_dir: Path):
        self.template_dir = Path(template_dir)
        self._entries: Dict[str, TemplateEntry] = {}
        self._loaded = False

    def load(self) -> None:
        """Load the manifest and scan the directory for extra templates."""
        self._entries = {}

        if not self.template_dir.is_dir():
            logger.warning(f"Template directory not found: {self.template_dir}")
            self._loaded = True
            return

        manifest_path = self.template_dir / MANIFEST_NAME
        if manifest_path.exists():
            with open(manifest_path, encoding="utf-8") as f:
                raw_data = yaml.safe_load(f) or {}

            for item in raw_data.get("templates", []):
                entry = TemplateEntry(**item)
                self._entries[entry.id] = entry

        for html_path in sorted(self.template_dir.glob("*.html")):
            template_id = html_path.stem
            if template_id not in self._entries and not any(
                e.file == html_path.name for e in self._entries.values()
            ):
                self._entries[template_id] = TemplateEntry(
                    id=template_id,
                    name=template_id.replace("-", " ").replace("_", " ").title(),
                    file=html_path.name,
                )

        logger.info(f"Loaded {len(self._entries)} templates from {self.template_dir}")
        self._loaded = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def get_entry(self, template_id: str) -> Optional[TemplateEntry]:
        self._ensure_loaded()
        return self._entries.get(template_id)

    def get_body(self, template_id: str) -> str:
        """Return the template source for ``template_id``.

        Raises:
            TemplateNotFoundError: If the id is unknown or its file is missing.
        """
        entry = self.get_entry(template_id)
        if entry is None:
            raise TemplateNotFoundError(f"Template not found: {template_id}")

        path = self.template_dir / entry.file
        if not path.is_file():
            logger.error(f"Template '{template_id}' points at missing file {path}")
            raise TemplateNotFoundError(f"Template not found: {template_id}")

        return path.read_text(encoding="utf-8")

    def list_templates(self) -> List[Dict[str, str]]:
        self._ensure_loaded()
        return [entry.summary() for entry in self._entries.values()]
