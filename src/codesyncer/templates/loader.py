"""Template loading, discovery and placeholder rendering."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import yaml

from codesyncer.errors import TemplateNotFoundError
from codesyncer.templates.base import DocTemplate

logger = logging.getLogger(__name__)

TEMPLATE_DIRNAME = "templates"
TEMPLATE_YAML = "template.yaml"
CONTENT_FILE = "content.md"

TEMPLATE_SCOPES: tuple[str, ...] = ("repo", "master", "root")

PLACEHOLDER_PATTERN = re.compile(r"\[([A-Z][A-Z_]*)\]")


def get_package_templates_path() -> Path:
    """Directory holding the templates shipped with codesyncer."""
    return Path(__file__).parent / "default"


def get_local_templates_path(root: Path | None = None) -> Path:
    """Directory holding a project's overrides: <root>/.codesyncer/templates/."""
    return (root or Path.cwd()) / ".codesyncer" / TEMPLATE_DIRNAME


def discover_template_dirs(base_path: Path) -> dict[str, Path]:
    """Map template names to their directories under ``base_path``.

    A directory counts as a template only when it holds a template.yaml.
    """
    if not base_path.is_dir():
        return {}
    return {
        child.name: child
        for child in sorted(base_path.iterdir())
        if (child / TEMPLATE_YAML).is_file()
    }


def load_template_from_dir(template_dir: Path) -> DocTemplate | None:
    """Build a DocTemplate from ``template.yaml`` and ``content.md``.

    Missing or malformed metadata yields None so a broken override falls
    back to the bundled template. Unknown scopes are treated as ``repo``.
    """
    try:
        meta = yaml.safe_load((template_dir / TEMPLATE_YAML).read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except yaml.YAMLError as e:
        logger.warning("Skipping template %s: %s", template_dir, e)
        return None
    if not isinstance(meta, dict):
        return None

    name = str(meta.get("name") or template_dir.name)
    scope = str(meta.get("scope", "repo"))
    content_path = template_dir / CONTENT_FILE
    return DocTemplate(
        name=name,
        description=str(meta.get("description", "")),
        output=str(meta.get("output") or f"{name.upper()}.md"),
        scope=scope if scope in TEMPLATE_SCOPES else "repo",
        content=content_path.read_text(encoding="utf-8") if content_path.is_file() else "",
        source=template_dir,
    )


def get_all_templates(root: Path | None = None) -> dict[str, DocTemplate]:
    """Return every template by name; a project override replaces the bundled one."""
    templates: dict[str, DocTemplate] = {}
    for base in (get_package_templates_path(), get_local_templates_path(root)):
        for template_dir in discover_template_dirs(base).values():
            template = load_template_from_dir(template_dir)
            if template is not None:
                templates[template.name] = template
    return templates


def load_template(name: str, root: Path | None = None) -> DocTemplate:
    """Get a template by name, checking project overrides first.

    Raises:
        TemplateNotFoundError: If no template with that name exists.
    """
    for base in (get_local_templates_path(root), get_package_templates_path()):
        template_dir = base / name
        if template_dir.exists():
            tmpl = load_template_from_dir(template_dir)
            if tmpl:
                return tmpl
    raise TemplateNotFoundError(name)


def templates_for_scope(scope: str, root: Path | None = None) -> list[DocTemplate]:
    """Return templates of one scope sorted by name."""
    return sorted(
        (t for t in get_all_templates(root).values() if t.scope == scope),
        key=lambda t: t.name,
    )


def render_template(content: str, variables: dict[str, str]) -> str:
    """Replace ``[KEY]`` placeholders with values.

    Unknown placeholders are left in place so validation can report them.
    """
    def _sub(match: re.Match[str]) -> str:
        return variables.get(match.group(1), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_sub, content)


def find_placeholders(content: str) -> list[str]:
    """Return unfilled ``[KEY]`` placeholders in document order."""
    return [m.group(0) for m in PLACEHOLDER_PATTERN.finditer(content)]
