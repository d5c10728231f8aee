"""
Template Registry

Read-only source of active template versions for the selection engine.
The engine only ever sees a snapshot; nothing here is global.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Optional, List, Dict, Iterable, Tuple, Protocol

import yaml
from loguru import logger

from .template import TemplateCandidate


class TemplateRegistry(Protocol):
    """Interface the selector depends on."""

    def list_active_templates(self) -> List[TemplateCandidate]:
        ...

    def get_template(self, template_id: str) -> Optional[TemplateCandidate]:
        ...


class InMemoryTemplateRegistry:
    """
    Registry of template versions held in memory.

    Provides:
    - Registration of template versions
    - Read-only snapshots of the active ones
    - Loading template definitions from YAML or JSON files

    Usage:
        registry = InMemoryTemplateRegistry()

        # Register a template
        registry.register(my_template)

        # Take a snapshot for one selection pass
        templates = registry.list_active_templates()

        # Load definitions from disk
        registry.load_from_directory('templates/')
    """

    def __init__(self, templates: Optional[Iterable[TemplateCandidate]] = None):
        self._templates: Dict[str, TemplateCandidate] = {}
        self._lock = threading.Lock()
        for template in templates or ():
            self.register(template)

    def register(
        self,
        template: TemplateCandidate,
        overwrite: bool = False,
    ) -> None:
        """
        Register a template version.

        Args:
            template: Template to register
            overwrite: Whether to replace an existing template with the same id

        Raises:
            ValueError: If the template id or slug is already registered and overwrite=False
        """
        self.register_all([template], overwrite=overwrite)

    def unregister(self, template_id: str) -> bool:
        """
        Remove a template.

        Returns:
            True if the template was removed
        """
        with self._lock:
            removed = self._templates.pop(template_id, None)

        if removed is not None:
            logger.debug(f"Unregistered template: {removed.template_slug}")
            return True
        return False

    def get_template(self, template_id: str) -> Optional[TemplateCandidate]:
        """Look up a template by id or slug."""
        with self._lock:
            template = self._templates.get(template_id)
            if template is None:
                for candidate in self._templates.values():
                    if candidate.template_slug == template_id:
                        return candidate
            return template

    def list_active_templates(self) -> List[TemplateCandidate]:
        """Active templates sorted by slug, as a fresh list."""
        with self._lock:
            active = [t for t in self._templates.values() if t.is_active]
        return sorted(active, key=lambda t: t.template_slug)

    def snapshot(self) -> Tuple[TemplateCandidate, ...]:
        """Immutable snapshot of the active templates."""
        return tuple(self.list_active_templates())

    def __len__(self) -> int:
        return len(self._templates)

    def register_all(
        self,
        templates: Iterable[TemplateCandidate],
        overwrite: bool = False,
    ) -> int:
        """
        Register several template versions, all or none.

        Args:
            templates: Templates to register
            overwrite: Whether to replace existing templates with the same id

        Returns:
            Number of templates registered

        Raises:
            ValueError: If any template id or slug conflicts; nothing is registered then
        """
        templates = list(templates)
        with self._lock:
            merged = dict(self._templates)
            for template in templates:
                if template.template_id in merged and not overwrite:
                    raise ValueError(f"Template '{template.template_id}' already registered")
                for other in merged.values():
                    if other.template_slug == template.template_slug and other.template_id != template.template_id:
                        raise ValueError(
                            f"Slug '{template.template_slug}' already used by template '{other.template_id}'"
                        )
                merged[template.template_id] = template
            self._templates = merged

        for template in templates:
            logger.debug(f"Registered template: {template.template_slug} ({template.version_id})")
        return len(templates)

    def load(self, path: str, overwrite: bool = False) -> int:
        """
        Load template definitions from a YAML or JSON file.

        The file holds either a single template mapping or a mapping with
        a 'templates' list. Every entry is parsed before any is registered,
        so a malformed file leaves the registry unchanged.

        Args:
            path: Input file path
            overwrite: Whether to replace templates already registered

        Returns:
            Number of templates loaded

        Raises:
            ValueError: If the file is not valid YAML/JSON or its content is
                not a template definition
        """
        file_path = Path(path)
        with open(file_path, 'r', encoding='utf-8') as f:
            try:
                if file_path.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                raise ValueError(f"{path}: cannot parse template file ({e})") from e

        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")

        entries = data['templates'] if 'templates' in data else [data]
        if not isinstance(entries, list):
            raise ValueError(f"{path}: 'templates' must be a list, got {type(entries).__name__}")

        templates = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"{path}: template #{index} must be a mapping, got {type(entry).__name__}")
            try:
                templates.append(TemplateCandidate.from_dict(entry))
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                raise ValueError(f"{path}: malformed template definition #{index} ({e})") from e

        count = self.register_all(templates, overwrite=overwrite)
        logger.info(f"Loaded {count} templates from {path}")
        return count

    def load_from_directory(
        self,
        directory: str,
        patterns: Tuple[str, ...] = ('*.yaml', '*.yml', '*.json'),
        overwrite: bool = True,
    ) -> int:
        """
        Load every template file in a directory.

        Files that fail to load are logged and skipped.

        Returns:
            Number of templates loaded
        """
        path = Path(directory)
        files = sorted({p for pattern in patterns for p in path.glob(pattern)})
        count = 0

        for file_path in files:
            try:
                count += self.load(str(file_path), overwrite=overwrite)
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load {file_path}: {e}")

        return count

    def clear(self) -> None:
        """Remove all templates."""
        with self._lock:
            self._templates.clear()
        logger.debug("Template registry cleared")


def load_registry(path: str) -> InMemoryTemplateRegistry:
    """
    Build a registry from a template file or a directory of template files.

    Args:
        path: File or directory path

    Returns:
        Populated InMemoryTemplateRegistry
    """
    registry = InMemoryTemplateRegistry()
    if Path(path).is_dir():
        registry.load_from_directory(path)
    else:
        registry.load(path)
    return registry
